import logging


logger = logging.getLogger(__name__)


def ui_call(page, fn) -> None:
    """Run ``fn`` on the Flet UI loop when there is one, inline otherwise."""
    if page is None:
        fn()
    elif hasattr(page, "run_on_idle"):
        page.run_on_idle(fn)
    elif hasattr(page, "call_from_thread"):
        page.call_from_thread(fn)
    else:
        fn()


def safe_update(control) -> None:
    """Update a control that may already have been removed from the page."""
    try:
        control.update()
    except (AssertionError, RuntimeError) as exc:
        logger.debug("Skipped update of detached control: %s", exc)
