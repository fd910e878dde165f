"""邮件投递

真实发信不在本服务范围内，``LoggingMailer`` 只把邮件内容写进日志，
生命周期逻辑只保证 token 已生成并交给了 mailer。
"""
from abc import ABC, abstractmethod
from urllib.parse import quote

from flowdash_auth.utils.logging_config import get_logger

logger = get_logger(__name__)


def build_link(base_url: str, path: str, token: str, email: str) -> str:
    return f"{base_url}{path}?token={token}&email={quote(email, safe='')}"


class Mailer(ABC):
    def __init__(self, frontend_url: str) -> None:
        self.frontend_url = frontend_url.rstrip("/")

    @abstractmethod
    def send_verification(self, email: str, name: str, token: str) -> None:
        ...

    @abstractmethod
    def send_password_reset(self, email: str, name: str, token: str) -> None:
        ...

    def verification_link(self, email: str, token: str) -> str:
        return build_link(self.frontend_url, "/auth", token, email)

    def reset_link(self, email: str, token: str) -> str:
        return build_link(self.frontend_url, "/reset-password", token, email)


class LoggingMailer(Mailer):
    def send_verification(self, email: str, name: str, token: str) -> None:
        logger.info(
            "\n".join([
                "=" * 60,
                "VERIFICATION EMAIL (Mock)",
                f"To: {email}",
                "Subject: Verify your FlowDash account",
                f"Hello {name},",
                "Welcome to FlowDash! Please verify your email address by clicking the link below:",
                self.verification_link(email, token),
                "This link will expire in 24 hours.",
                "=" * 60,
            ])
        )

    def send_password_reset(self, email: str, name: str, token: str) -> None:
        logger.info(
            "\n".join([
                "=" * 60,
                "PASSWORD RESET EMAIL (Mock)",
                f"To: {email}",
                "Subject: Reset your FlowDash password",
                f"Hello {name},",
                "You requested to reset your password. Click the link below:",
                self.reset_link(email, token),
                "This link will expire in 1 hour.",
                "If you did not request this, please ignore this email.",
                "=" * 60,
            ])
        )
