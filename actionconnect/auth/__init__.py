from .tokens import IdentityClaim, authenticate, bearer_token, issue_token

__all__ = ["IdentityClaim", "authenticate", "bearer_token", "issue_token"]
