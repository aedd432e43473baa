"""
Lambdaform - Reconciler for AWS Lambda functions.

This package compares a declared function definition against the last
applied state and creates, updates, replaces or removes the remote
function accordingly.
"""

__version__ = "0.1.0"
__author__ = "Arvo AI"
