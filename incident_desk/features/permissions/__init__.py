"""
Authorization for team-scoped incidents.

policy.py holds the pure decision rules, decisions.py the allow/deny
values, and dependencies.py the FastAPI guards that feed them resolved
roles.
"""
