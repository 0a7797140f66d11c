"""Security tests for NotaryFlow

This module contains security-focused tests including:
- Authentication bypass attempts
- Role escalation
"""
