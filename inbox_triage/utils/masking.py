"""
Privacy helpers for log output.
"""

from email.utils import parseaddr


def mask_email(address: str) -> str:
    """
    Mask an email address for privacy in logs.

    Keeps the first and last character of the local part and the first
    character of the domain, which is enough to tell messages apart while
    debugging. Display names ("Jane <jane@example.com>") are dropped.

    Args:
        address: Email address or full From header value

    Returns:
        Masked email address
    """
    if not address:
        return address

    _, email = parseaddr(address)
    if '@' not in email:
        return address

    try:
        username, domain = email.split('@', 1)
        if len(username) <= 2:
            masked_username = '*' * len(username)
        else:
            masked_username = username[0] + '*' * (len(username) - 2) + username[-1]

        domain_parts = domain.split('.')
        masked_domain = domain_parts[0][0] + '*' * (len(domain_parts[0]) - 1)

        return f"{masked_username}@{masked_domain}.{'.'.join(domain_parts[1:])}"
    except IndexError:
        return "***@***.***"
