"""Transmit - server-push broadcast engine over Server-Sent Events."""
