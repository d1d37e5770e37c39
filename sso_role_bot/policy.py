# policy.py
# Decides which abstract role labels a verified Google profile earns.

from dataclasses import dataclass
from typing import Mapping, Optional

VERIFIED = 'verified'

# E-mail domain -> label. Every authenticated user also gets VERIFIED.
DEFAULT_DOMAIN_RULES = {
    'yourcompany.com': 'admin',
    'partner.com': 'moderator',
}


@dataclass(frozen=True)
class ExternalProfile:
    provider_user_id: str
    email: str
    display_name: str = ''
    avatar_url: str = ''
    email_verified: bool = True


class RolePolicy:
    def __init__(self, domain_rules: Optional[Mapping[str, str]] = None):
        rules = DEFAULT_DOMAIN_RULES if domain_rules is None else domain_rules
        self.domain_rules = {domain.lower(): label for domain, label in rules.items()}

    def resolve(self, profile: Optional[ExternalProfile]) -> frozenset:
        """Labels for ``profile``. Depends on nothing but the e-mail domain.

        An address Google has not verified earns no domain label.
        """
        if profile is None:
            return frozenset()

        labels = {VERIFIED}
        email = (profile.email or '').strip().lower()
        if profile.email_verified and '@' in email:
            domain = email.rsplit('@', 1)[1]
            label = self.domain_rules.get(domain)
            if label:
                labels.add(label)
        return frozenset(labels)
