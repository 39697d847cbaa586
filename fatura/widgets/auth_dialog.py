from __future__ import annotations

from typing import Optional

from PySide6.QtWidgets import (
    QDialog,
    QFormLayout,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPushButton,
    QStackedWidget,
    QVBoxLayout,
    QWidget,
)

from fatura.core.errors import FaturaError
from fatura.core.models import AppUser
from fatura.services.auth import IdentityService

PAGE_LOGIN, PAGE_REGISTER, PAGE_CONFIRM, PAGE_RESET = range(4)


class AuthDialog(QDialog):
    """Sign in, register (with code confirmation) and password reset.

    With no mail server the confirmation / reset code is shown in the dialog.
    On success `user` holds the signed-in AppUser.
    """

    def __init__(self, identity: IdentityService, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.identity = identity
        self.user: Optional[AppUser] = None
        self.setWindowTitle("Sign in")
        self.setModal(True)
        self.resize(380, 0)

        self.stack = QStackedWidget()
        self.status = QLabel("")
        self.status.setObjectName("StatusMessage")
        self.status.setWordWrap(True)

        # Login
        self.login_email = QLineEdit()
        self.login_password = QLineEdit()
        self.login_password.setEchoMode(QLineEdit.Password)
        self.btn_login = QPushButton("Sign in")
        self.btn_to_register = QPushButton("Create account")
        self.btn_to_reset = QPushButton("Forgot password")
        self.stack.addWidget(self._page(
            [("Email", self.login_email), ("Password", self.login_password)],
            [self.btn_login, self.btn_to_register, self.btn_to_reset],
        ))

        # Register
        self.reg_name = QLineEdit()
        self.reg_email = QLineEdit()
        self.reg_password = QLineEdit()
        self.reg_password.setEchoMode(QLineEdit.Password)
        self.btn_register = QPushButton("Register")
        self.btn_reg_back = QPushButton("Back")
        self.stack.addWidget(self._page(
            [("Name", self.reg_name), ("Email", self.reg_email), ("Password", self.reg_password)],
            [self.btn_register, self.btn_reg_back],
        ))

        # Confirm
        self.confirm_code = QLineEdit()
        self.btn_confirm = QPushButton("Confirm")
        self.stack.addWidget(self._page([("Code", self.confirm_code)], [self.btn_confirm]))

        # Reset
        self.reset_email = QLineEdit()
        self.reset_code = QLineEdit()
        self.reset_password = QLineEdit()
        self.reset_password.setEchoMode(QLineEdit.Password)
        self.btn_send_code = QPushButton("Send code")
        self.btn_reset = QPushButton("Set password")
        self.btn_reset_back = QPushButton("Back")
        self.stack.addWidget(self._page(
            [("Email", self.reset_email), ("Code", self.reset_code), ("New password", self.reset_password)],
            [self.btn_send_code, self.btn_reset, self.btn_reset_back],
        ))

        root = QVBoxLayout(self)
        root.addWidget(self.stack)
        root.addWidget(self.status)

        self.btn_login.clicked.connect(self.do_login)
        self.btn_to_register.clicked.connect(lambda: self._go(PAGE_REGISTER))
        self.btn_to_reset.clicked.connect(lambda: self._go(PAGE_RESET))
        self.btn_register.clicked.connect(self.do_register)
        self.btn_reg_back.clicked.connect(lambda: self._go(PAGE_LOGIN))
        self.btn_confirm.clicked.connect(self.do_confirm)
        self.btn_send_code.clicked.connect(self.do_send_code)
        self.btn_reset.clicked.connect(self.do_reset)
        self.btn_reset_back.clicked.connect(lambda: self._go(PAGE_LOGIN))
        self.login_password.returnPressed.connect(self.do_login)

    @staticmethod
    def _page(rows, buttons) -> QWidget:
        w = QWidget()
        v = QVBoxLayout(w)
        form = QFormLayout()
        for label, edit in rows:
            form.addRow(label, edit)
        v.addLayout(form)
        h = QHBoxLayout()
        for b in buttons:
            h.addWidget(b)
        v.addLayout(h)
        return w

    def _go(self, index: int) -> None:
        self.stack.setCurrentIndex(index)
        self._say("")

    def _say(self, text: str, error: bool = False) -> None:
        self.status.setText(text)
        self.status.setProperty("error", error)
        # re-polish so the dynamic property restyles the label
        self.status.style().unpolish(self.status)
        self.status.style().polish(self.status)

    # ----- actions -----
    def do_login(self) -> None:
        try:
            self.user = self.identity.login(self.login_email.text(), self.login_password.text())
        except FaturaError as e:
            self._say(e.message, error=True)
            return
        self.accept()

    def do_register(self) -> None:
        try:
            step = self.identity.register(self.reg_name.text(), self.reg_email.text(), self.reg_password.text())
        except FaturaError as e:
            self._say(e.message, error=True)
            return
        if step.next_step == "CONFIRM_SIGN_UP":
            self._go(PAGE_CONFIRM)
            self._say(f"Your confirmation code is {step.code}.")
        else:
            self._go(PAGE_LOGIN)

    def do_confirm(self) -> None:
        email = self.reg_email.text()
        try:
            self.identity.confirm(email, self.confirm_code.text())
        except FaturaError as e:
            self._say(e.message, error=True)
            return
        self.login_email.setText(email)
        self._go(PAGE_LOGIN)
        self._say("Account confirmed. You can sign in now.")

    def do_send_code(self) -> None:
        try:
            code = self.identity.start_password_reset(self.reset_email.text())
        except FaturaError as e:
            self._say(e.message, error=True)
            return
        self._say(f"Your reset code is {code}.")

    def do_reset(self) -> None:
        try:
            self.identity.complete_password_reset(self.reset_email.text(), self.reset_code.text(), self.reset_password.text())
        except FaturaError as e:
            self._say(e.message, error=True)
            return
        self.login_email.setText(self.reset_email.text())
        self._go(PAGE_LOGIN)
        self._say("Password changed. You can sign in now.")
