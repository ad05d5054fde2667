"""OpenPGP commit signing from armored key material."""

from __future__ import annotations

from contextlib import AbstractContextManager, nullcontext
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import pgpy
from pgpy.constants import HashAlgorithm, KeyFlags
from pgpy.errors import PGPDecryptionError, PGPError

from dependabot_bundler.engine.config_validation import require_non_empty, require_positive_int
from dependabot_bundler.engine.models import CommitSpec
from dependabot_bundler.logging_utils import get_logger

DEFAULT_BIT_SIZE = 4096
KEY_LIFETIME = timedelta(days=365)
PREFERRED_HASH = HashAlgorithm.SHA256
LOGGER = get_logger()


class SigningError(RuntimeError):
    """Raised when requested commit signing cannot be carried out."""


@dataclass(frozen=True)
class SigningKeyBundle:
    """Armored key material and the identity to sign commits as."""

    name: str
    email: str
    public_key: str
    private_key: str | None = None
    passphrase: str | None = None
    bit_size: int = DEFAULT_BIT_SIZE

    def __post_init__(self) -> None:
        require_non_empty(self.name, "signing name")
        require_non_empty(self.email, "signing email")
        require_non_empty(self.public_key, "signing public key")
        require_positive_int(self.bit_size, "signing bit size")


class CommitSigner:
    """Produces detached signatures over git commit payloads."""

    def __init__(
        self,
        *,
        public_key: pgpy.PGPKey,
        private_key: pgpy.PGPKey | None,
        passphrase: str | None,
        user_id: str,
    ) -> None:
        self.public_key = public_key
        self._private_key = private_key
        self._passphrase = passphrase
        self.user_id = user_id

    @property
    def fingerprint(self) -> str:
        """Return the fingerprint of the signing key."""
        return str(self.public_key.fingerprint)

    @property
    def can_sign(self) -> bool:
        """Return True when private key material is available."""
        return self._private_key is not None

    def sign(self, payload: str) -> str:
        """Return an ASCII-armored detached SHA-256 signature over payload."""
        if self._private_key is None:
            raise SigningError("signing requested but no private key was supplied.")
        try:
            with _unlocked(self._private_key, self._passphrase):
                signature = self._private_key.sign(
                    payload.encode("utf-8"),
                    hash=PREFERRED_HASH,
                )
        except (PGPError, PGPDecryptionError) as exc:
            raise SigningError(f"failed to sign commit: {exc}") from exc
        return str(signature)

    def sign_commit(self, spec: CommitSpec) -> str:
        """Sign the git object representation of a commit."""
        return self.sign(commit_signature_payload(spec))


def build_commit_signer(bundle: SigningKeyBundle) -> CommitSigner:
    """Decode, unlock and bind key material into a commit signer.

    The public key is the primary identity. A private key, when supplied, must
    belong to that public key; an encrypted private key is unlocked with the
    bundle passphrase. The user id is bound with a one-year key lifetime and
    SHA-256 as the preferred hash.
    """
    public_key = _load_key(bundle.public_key, "public")
    if not public_key.is_public:
        raise SigningError("public key is not of the right format")
    _check_bit_size(public_key, bundle.bit_size)

    private_key: pgpy.PGPKey | None = None
    if bundle.private_key:
        private_key = _load_key(bundle.private_key, "private")
        if private_key.is_public:
            raise SigningError("private key is not of the right format")
        if private_key.fingerprint != public_key.fingerprint:
            raise SigningError("private key does not belong to the supplied public key")

    user_id = f"{bundle.name} <{bundle.email}>"
    if private_key is not None:
        _bind_identity(private_key, bundle)
    LOGGER.debug("commit signing enabled for %s (%s)", user_id, public_key.fingerprint)
    return CommitSigner(
        public_key=public_key,
        private_key=private_key,
        passphrase=bundle.passphrase,
        user_id=user_id,
    )


def commit_signature_payload(spec: CommitSpec) -> str:
    """Render the commit object text git verifies a signature against."""
    timestamp = int(spec.author.date.timestamp())
    offset = spec.author.date.strftime("%z") or "+0000"
    identity = f"{spec.author.name} <{spec.author.email}> {timestamp} {offset}"
    lines = [f"tree {spec.tree_sha}"]
    lines.extend(f"parent {sha}" for sha in spec.parent_shas)
    lines.append(f"author {identity}")
    lines.append(f"committer {identity}\n")
    lines.append(spec.message)
    return "\n".join(lines)


def _load_key(armored: str, kind: str) -> pgpy.PGPKey:
    """Decode one armored key block."""
    try:
        key, _ = pgpy.PGPKey.from_blob(armored)
    except (PGPError, ValueError, TypeError, NotImplementedError) as exc:
        raise SigningError(f"failed to get {kind} key: {exc}") from exc
    return key


def _unlocked(key: pgpy.PGPKey, passphrase: str | None) -> AbstractContextManager[Any]:
    """Return a context in which key is usable for signing."""
    if not key.is_protected:
        return nullcontext(key)
    if not passphrase:
        raise SigningError("private key is encrypted but no passphrase was supplied")
    return key.unlock(passphrase)


def _bind_identity(key: pgpy.PGPKey, bundle: SigningKeyBundle) -> None:
    """Self-certify the signing identity on the private key."""
    created = key.created if key.created.tzinfo else key.created.replace(tzinfo=UTC)
    lifetime = (datetime.now(tz=UTC) - created) + KEY_LIFETIME
    uid = pgpy.PGPUID.new(bundle.name, email=bundle.email)
    try:
        with _unlocked(key, bundle.passphrase):
            key.add_uid(
                uid,
                usage={KeyFlags.Sign, KeyFlags.Certify},
                hashes=[PREFERRED_HASH],
                key_expiration=lifetime,
                primary=False,
            )
    except (PGPError, PGPDecryptionError) as exc:
        raise SigningError(f"failed to decrypt private key: {exc}") from exc


def _check_bit_size(key: pgpy.PGPKey, expected: int) -> None:
    """Log when an RSA key does not have the configured size."""
    size = key.key_size
    if isinstance(size, int) and size != expected:
        LOGGER.debug("signing key is %d bits, configured bit size is %d", size, expected)
