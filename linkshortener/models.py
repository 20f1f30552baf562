from dataclasses import dataclass
from datetime import datetime, UTC


EPOCH = datetime.fromtimestamp(0, tz=UTC)

UTM_FIELDS = ('utm_source', 'utm_medium', 'utm_campaign', 'utm_content', 'utm_term')


# fmt: off
@dataclass(frozen=True)
class EntryModel:
    target: str                             # Original long URL
    shortcode: str = ''                     # Unique short identifier, empty until created
    password_hash: bytes | None = None      # bcrypt hash, None if no password is required
    created_at: datetime | None = None      # Set once by the entry store
    expires_at: datetime | None = None      # Entry is expired once this moment has passed
    remote_addr: str | None = None          # Address of the client that created the entry
    visit_count: int = 0                    # Derived: length of the visitor log
    last_visit_at: datetime | None = None   # Derived: timestamp of the newest visitor
# fmt: on

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        return (now or datetime.now(UTC)) > self.expires_at

    def is_password_protected(self) -> bool:
        return bool(self.password_hash)


# fmt: off
@dataclass(frozen=True)
class VisitorModel:
    ip: str                                 # Remote address of the visitor
    referer: str = ''
    user_agent: str = ''
    timestamp: datetime | None = None       # Moment of the redirect
    utm_source: str = ''
    utm_medium: str = ''
    utm_campaign: str = ''
    utm_content: str = ''
    utm_term: str = ''
# fmt: on
