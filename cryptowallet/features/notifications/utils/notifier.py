from fastapi import BackgroundTasks

from cryptowallet.features.notifications.utils.email_service import EmailService, TransactionNotice


class EmailNotifier:
    """
    Queues transaction emails on the request's BackgroundTasks so they run
    after the response is sent. Without a BackgroundTasks it sends inline.
    """

    def __init__(self, email_service: EmailService, background_tasks: BackgroundTasks | None = None):
        self.email_service = email_service
        self.background_tasks = background_tasks

    def notify(self, notice: TransactionNotice) -> None:
        if self.background_tasks is not None:
            self.background_tasks.add_task(self.email_service.send_transaction_email, notice)
        else:
            self.email_service.send_transaction_email(notice)


def get_email_service() -> EmailService:
    return EmailService()
