import pytest

from devconvenience.errors_catalog import actionable_error


def test_actionable_error_formats_message_with_suggested_action():
    message = actionable_error("imagemin_not_found", path="/srv/app/node_modules/imagemin")

    assert "Imagemin node modules not found in /srv/app/node_modules/imagemin." in message
    assert "Suggested action:" in message


def test_actionable_error_rejects_unknown_code():
    with pytest.raises(KeyError, match="Unknown error catalog key"):
        actionable_error("does_not_exist")
