"""Platform adapters for the proactive relay.

Available adapters:
    - botframework: Bot Framework bot with a proactive trigger endpoint
      (adapters.botframework.ProactiveBot)
"""
