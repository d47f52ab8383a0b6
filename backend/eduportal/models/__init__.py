from eduportal.models.account import Account
from eduportal.models.identity_link import ExternalIdentityLink

__all__ = [
    "Account",
    "ExternalIdentityLink",
]
