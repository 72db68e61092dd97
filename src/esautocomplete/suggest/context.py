"""Context path normalization."""

from esautocomplete.config.constants import DEFAULT_CONTEXT


def clean_context(context: str | None) -> str:
    """Canonical context path: spaces become ``/`` and a leading ``/`` is ensured.

    ``"Inbox Personal"`` -> ``"/Inbox/Personal"``; ``None`` -> ``"/"``.
    """
    if context is None:
        return DEFAULT_CONTEXT
    context = str(context).replace(" ", "/")
    if not context.startswith("/"):
        context = "/" + context
    return context
