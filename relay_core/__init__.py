"""Core of the proactive relay: conversation state, references and continuation."""
