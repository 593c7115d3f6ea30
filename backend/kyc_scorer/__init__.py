"""KYC address confidence scoring service."""
