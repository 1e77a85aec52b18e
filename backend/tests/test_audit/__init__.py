"""
Audit Test Suite

End-to-end checks organized by audit category:
- Flow audit (F-01 to F-04): Requester and auditor journeys
- State machine audit (S-01 to S-03): Audit status transitions
- Security audit (SEC-01 to SEC-04): Sessions, access control, secrets
"""
