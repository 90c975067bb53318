# accounting/registry.py
"""
Account Registry: code -> account lookup used to validate every posting.
"""

import re
from typing import Iterable

from accounting.errors import UnknownAccountError, ValidationError
from accounting.models import ACCOUNT_CODE_PATTERN, Account
from accounting.policies import assert_can_post_to_account

_CODE_RE = re.compile(ACCOUNT_CODE_PATTERN)


def validate_account_code(code) -> str:
    if not isinstance(code, str) or not _CODE_RE.match(code):
        raise ValidationError(f"Invalid account code {code!r}; expected format D-DDDDD.")
    return code


class AccountRegistry:
    """Snapshot of the chart of accounts for the codes a posting touches."""

    def __init__(self, accounts: dict[str, Account]):
        self._accounts = accounts

    @classmethod
    def load(cls, codes: Iterable[str] | None = None) -> "AccountRegistry":
        qs = Account.objects.all()
        if codes is not None:
            qs = qs.filter(code__in=set(codes))
        return cls({account.code: account for account in qs})

    def __contains__(self, code) -> bool:
        return code in self._accounts

    def get(self, code: str) -> Account | None:
        return self._accounts.get(code)

    def resolve(self, code, *, allow_inactive: bool = False) -> Account:
        """
        Return the account for ``code`` or raise.

        Inactive accounts are refused unless ``allow_inactive``: a reversal
        has to reach the accounts of the journal it mirrors even after they
        were deactivated.
        """
        validate_account_code(code)
        account = self._accounts.get(code)
        if account is None:
            raise UnknownAccountError(code)
        if not allow_inactive:
            assert_can_post_to_account(account)
        return account
