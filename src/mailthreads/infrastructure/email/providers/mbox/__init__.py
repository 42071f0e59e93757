from mailthreads.infrastructure.email.providers.mbox.source import MboxMessageSource

__all__ = ["MboxMessageSource"]
