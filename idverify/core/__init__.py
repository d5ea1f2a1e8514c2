"""Configuration, logging, errors and security"""
