from isoko_ui.layout import welcome_message
from isoko_ui.roles import Role
from isoko_ui.session import User


def test_welcome_message_by_role():
    user = User(id="u1", email="c@isoko.rw", role=Role.CASHIER, first_name="Eric")
    message = welcome_message(user)
    assert message.startswith("Welcome back, Eric.")
    assert "repayments" in message


def test_welcome_message_unknown_role():
    user = User(id="u1", email="x@isoko.rw", role=None, first_name="Jo")
    assert welcome_message(user) == "Welcome back, Jo. Use the menu to get started."


def test_welcome_message_without_user():
    assert welcome_message(None) == "Welcome."
