"""
Core services for Blueprint AI: settings, push channel, prompts, errors.
"""
