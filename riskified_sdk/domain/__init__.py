"""
Domain layer for the Riskified orders SDK.

Orders, notifications and the results decoded from Riskified responses.
"""
