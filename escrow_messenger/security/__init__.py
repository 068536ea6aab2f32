# Security Module
"""
Certificate trust and per-message key escrow.
"""

from .certificates import Identity, Certificate, CertificateAuthority, CertificateTrust
from .escrow import EscrowPayload, EscrowEncoder, OversightAuthority

__all__ = ['Identity', 'Certificate', 'CertificateAuthority', 'CertificateTrust',
           'EscrowPayload', 'EscrowEncoder', 'OversightAuthority']
