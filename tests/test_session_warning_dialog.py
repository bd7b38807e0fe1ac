from __future__ import annotations

import pytest

from core.session_warning_dialog import SessionWarningDialog, build_warning_message, format_countdown


@pytest.mark.parametrize(
    "seconds, text",
    [(300, "5:00"), (299, "4:59"), (61, "1:01"), (9, "0:09"), (0, "0:00"), (-3, "0:00")],
)
def test_format_countdown(seconds, text):
    assert format_countdown(seconds) == text


def test_warning_message_mentions_remaining_time():
    assert "4:05" in build_warning_message(245)


def test_dialog_tracks_countdown_and_extend():
    dialog = SessionWarningDialog()
    requests = []
    dialog.extendRequested.connect(lambda: requests.append(True))

    dialog.show_countdown(300)
    assert dialog.isVisible()
    assert dialog.seconds_remaining == 300

    dialog.update_countdown(120)
    assert dialog.seconds_remaining == 120

    dialog._extend_btn.click()
    assert requests == [True]

    dialog.dismiss()
    assert not dialog.isVisible()
    assert dialog.seconds_remaining == 0
