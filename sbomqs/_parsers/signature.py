"""Embedded JSON signatures (JSF) in CycloneDX documents.

The signature object may sit at the top level or under ``declarations`` and
comes in three shapes: a single signer, a ``signers`` list or a ``chain``.
Only the first signer of a list or chain is considered.
"""

import base64
import binascii
import copy
import json
from typing import Any, Dict, Optional

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from ..logging_config import logger
from ..models import Signature

_HASHES = {
    "256": hashes.SHA256,
    "384": hashes.SHA384,
    "512": hashes.SHA512,
}


def _decode_b64(value: str) -> bytes:
    """Decode base64 the way JWKs in the wild are encoded.

    Tries URL-safe, then standard alphabet, then URL-safe with the padding
    that JWK encoders strip.

    Raises:
        ValueError: If no variant decodes.
    """
    attempts = (
        lambda v: base64.urlsafe_b64decode(v),
        lambda v: base64.b64decode(v, validate=True),
        lambda v: base64.urlsafe_b64decode(v + "=" * (-len(v) % 4)),
    )
    for attempt in attempts:
        try:
            return attempt(value)
        except (binascii.Error, ValueError):
            continue
    raise ValueError(f"invalid base64 value: {value[:16]}...")


def jwk_to_pem(public_key: Dict[str, Any]) -> str:
    """Rebuild a PEM encoded RSA public key from a JWK ``n``/``e`` pair.

    Returns:
        PEM text, or an empty string when the key is not an RSA JWK.
    """
    if str(public_key.get("kty", "")).upper() != "RSA":
        return ""
    n_text = public_key.get("n")
    e_text = public_key.get("e")
    if not n_text or not e_text:
        return ""

    try:
        modulus = int.from_bytes(_decode_b64(str(n_text)), "big")
        exponent = int.from_bytes(_decode_b64(str(e_text)), "big")
        key = rsa.RSAPublicNumbers(exponent, modulus).public_key()
    except (ValueError, UnsupportedAlgorithm) as e:
        logger.debug(f"Could not rebuild RSA public key: {e}")
        return ""

    pem = key.public_bytes(serialization.Encoding.PEM, serialization.PublicFormat.SubjectPublicKeyInfo)
    return pem.decode("ascii")


def _select_signer(signature: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    if signature.get("value"):
        return signature
    for key in ("signers", "chain"):
        entries = signature.get(key)
        if isinstance(entries, list) and entries and isinstance(entries[0], dict):
            return entries[0]
    return None


def signed_payload(data: Dict[str, Any]) -> bytes:
    """The document without its signature, as 2-space indented JSON."""
    unsigned = copy.deepcopy(data)
    unsigned.pop("signature", None)
    declarations = unsigned.get("declarations")
    if isinstance(declarations, dict):
        declarations.pop("signature", None)
    return json.dumps(unsigned, indent=2, ensure_ascii=False).encode("utf-8")


def extract_signature(data: Dict[str, Any]) -> Optional[Signature]:
    """Read the JSF signature of a decoded CycloneDX JSON document.

    Args:
        data: Decoded JSON document

    Returns:
        Signature, or None when the document carries no usable signature.
    """
    raw = data.get("signature")
    if not isinstance(raw, dict):
        declarations = data.get("declarations")
        raw = declarations.get("signature") if isinstance(declarations, dict) else None
    if not isinstance(raw, dict):
        return None

    signer = _select_signer(raw)
    if signer is None:
        logger.debug("Signature object has no signer with a value")
        return None

    public_key = signer.get("publicKey")
    pem = jwk_to_pem(public_key) if isinstance(public_key, dict) else ""

    return Signature(
        algorithm=str(signer.get("algorithm", "")),
        key_id=str(signer.get("keyId", "")),
        value=str(signer.get("value", "")),
        public_key=pem,
        certificate_path=tuple(str(c) for c in signer.get("certificatePath") or []),
        excludes=tuple(str(e) for e in signer.get("excludes") or []),
        payload=signed_payload(data),
    )


def verify_signature(signature: Optional[Signature]) -> bool:
    """Check an RSA signature (RS256/384/512 or PS256/384/512) over its payload.

    Any decoding or verification failure yields False.
    """
    if signature is None or not signature.present or not signature.public_key:
        return False

    algorithm = signature.algorithm.upper()
    hash_cls = _HASHES.get(algorithm[2:])
    if algorithm[:2] not in ("RS", "PS") or hash_cls is None:
        logger.debug(f"Unsupported signature algorithm: {signature.algorithm}")
        return False

    try:
        key = serialization.load_pem_public_key(signature.public_key.encode("ascii"))
        value = _decode_b64(signature.value)
        if not isinstance(key, rsa.RSAPublicKey):
            return False
        if algorithm.startswith("RS"):
            pad = padding.PKCS1v15()
        else:
            pad = padding.PSS(mgf=padding.MGF1(hash_cls()), salt_length=padding.PSS.AUTO)
        key.verify(value, signature.payload, pad, hash_cls())
    except (InvalidSignature, ValueError, UnsupportedAlgorithm) as e:
        logger.debug(f"Signature verification failed: {e}")
        return False
    return True
