"""
Domain models — partial values (input) and the resolved configuration (output).

All models are re-exported here for convenient access:

    from src.core.models import PartialValues, ResolvedConfiguration, ListenerKind
"""

from src.core.models.resolved import (
    CERTS_DIR,
    INTERNAL,
    TRUSTSTORES_DIR,
    CertificateEntry,
    Listener,
    ListenerKind,
    ResolvedConfiguration,
    TrustStoreKind,
    TrustStoreRef,
    VolumeMountSpec,
    freeze,
    thaw,
)
from src.core.models.values import (
    KeyRef,
    PartialCert,
    PartialExternalListener,
    PartialListener,
    PartialListeners,
    PartialListenerTLS,
    PartialValues,
    TrustStoreSource,
)

__all__ = [
    # resolved.py
    "CERTS_DIR",
    "CertificateEntry",
    "INTERNAL",
    # values.py
    "KeyRef",
    "Listener",
    "ListenerKind",
    "PartialCert",
    "PartialExternalListener",
    "PartialListener",
    "PartialListenerTLS",
    "PartialListeners",
    "PartialValues",
    "ResolvedConfiguration",
    "TRUSTSTORES_DIR",
    "TrustStoreKind",
    "TrustStoreRef",
    "TrustStoreSource",
    "VolumeMountSpec",
    "freeze",
    "thaw",
]
