from anemic.ioc import Container, service

from deposit_bridge.config import Config

from . import CombinedMessenger, DiscordMessenger, Messenger, NullMessenger, SlackMessenger


@service(scope="global", interface_override=Messenger)
def messenger_factory(container: Container):
    config = container.get(interface=Config)
    if not config.slack_webhook_url and not config.discord_webhook_url:
        return NullMessenger()

    username = f"Deposit Bridge [{config.btc_network}]"
    messengers = []
    if config.slack_webhook_url:
        messengers.append(
            SlackMessenger(
                webhook_url=config.slack_webhook_url,
                channel=config.slack_webhook_channel,
                username=username,
            )
        )
    if config.discord_webhook_url:
        messengers.append(
            DiscordMessenger(
                webhook_url=config.discord_webhook_url,
                username=username,
            )
        )
    return CombinedMessenger(messengers)
