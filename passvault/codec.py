from pydantic import ValidationError

from .crypto import SessionKey, seal, unseal
from .errors import MalformedPayload
from .logging import get_logger
from .models import VaultPayload

LOG = get_logger(__name__)

VAULT_CONTEXT = b"vault-payload"


def encrypt_vault(payload: VaultPayload, key: SessionKey) -> bytes:
    """Serialize `payload` to canonical JSON and seal it under a fresh nonce."""
    return seal(key, payload.model_dump_json().encode("utf-8"), VAULT_CONTEXT)


def decrypt_vault(blob: bytes, key: SessionKey) -> VaultPayload:
    """Open a vault blob.

    Raises AuthenticationFailed for a wrong key or tampered/truncated blob and
    MalformedPayload when the plaintext is not a valid vault payload.
    """
    pt = unseal(key, blob, VAULT_CONTEXT)
    try:
        return VaultPayload.model_validate_json(pt)
    except ValidationError as exc:
        LOG.error("vault_payload_malformed", errors=exc.error_count())
        raise MalformedPayload("vault decrypted but does not contain a valid payload") from exc


def empty_vault(key: SessionKey) -> bytes:
    return encrypt_vault(VaultPayload(), key)
