from mailthreads.infrastructure.email.providers.imap.client import ImapConfig, ImapMessageSource

__all__ = ["ImapConfig", "ImapMessageSource"]
