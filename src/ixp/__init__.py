"""
IXP - Intent Exchange Protocol server
Resolves semantic intents to remotely hosted UI components and renders them.
"""

__version__ = "1.0.0"
