"""Account, PIN and verification services"""
