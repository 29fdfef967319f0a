"""
Borrower-facing SMS copy for shipping notifications.
"""


def build_first_scan_message(tracking_url: str) -> str:
    """SMS sent on the first carrier scan of the outbound package."""
    return f"\U0001F69A Your borrowed item is on the way!\nTrack it here: {tracking_url}"


def build_delivered_message() -> str:
    """SMS sent when the outbound package is delivered."""
    return (
        "Your borrow was delivered! Don't forget to take pics and tag us "
        "while you're slaying in your borrowed fit! \U0001F4F8✨"
    )
