from html import escape
from app.clients.email import fm, MessageSchema, MessageType


async def send_account_delivery_email(recipient: str, plan_name: str, account_data: str):
    message = MessageSchema(
        subject="Sua nova conta Mais Créditos",
        recipients=[recipient],
        body=(
            f"<p>Obrigado pela compra do plano <b>{escape(plan_name)}</b>.</p>"
            f"<p>Dados da sua conta:</p><pre>{escape(account_data)}</pre>"
            "<p>Os mesmos dados ficam disponíveis no seu painel.</p>"
        ),
        subtype=MessageType.html
    )

    await fm.send_message(message)
