"""
Blueprint AI: a language-model agent that edits Unreal-style Blueprint
graphs through tool calls while streaming its work to a connected client.
"""

__version__ = "0.1.0"
