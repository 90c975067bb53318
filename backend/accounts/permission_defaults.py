# accounts/permission_defaults.py

_VIEW = {
    "accounts.view",
    "journal.view",
    "documents.view",
    "masterdata.view",
    "compliance.view",
    "periods.view",
    "reports.view",
    "assistant.view",
}

ROLE_DEFAULTS = {
    "ADMIN": _VIEW | {
        # Chart of accounts
        "accounts.manage",

        # Journals & documents
        "journal.create",
        "journal.post",
        "journal.void",
        "documents.create",
        "documents.post",
        "documents.void",
        "masterdata.manage",
        "attachments.upload",

        # Tax & compliance
        "tax.compute",
        "compliance.scan",
        "compliance.resolve",

        # Periods
        "periods.close",
        "periods.reopen",

        # AI assistant
        "assistant.use",
        "assistant.approve",

        # Administration
        "users.manage",
        "audit.view",
    },
    "USER": _VIEW | {
        "journal.create",
        "journal.post",
        "documents.create",
        "documents.post",
        "masterdata.manage",
        "attachments.upload",

        "tax.compute",
        "compliance.scan",

        "assistant.use",
        "assistant.approve",
    },
    "VIEWER": set(_VIEW),
}


def permissions_for_role(role: str) -> frozenset[str]:
    return frozenset(ROLE_DEFAULTS.get(role, ()))


def all_permission_codes() -> set[str]:
    codes: set[str] = set()
    for s in ROLE_DEFAULTS.values():
        codes |= set(s)
    return codes
