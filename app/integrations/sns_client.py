# app/integrations/sns_client.py
from botocore.exceptions import BotoCoreError, ClientError
from core.logger import logger
from core.aws_client import get_sns_client, to_service_error


class TopicClient:
    """Thin wrapper over the SNS API; Glacier publishes job completion here."""

    def __init__(self, client=None):
        self._sns = client or get_sns_client()

    def create_topic(self, name: str) -> str:
        try:
            resp = self._sns.create_topic(Name=name)
        except (ClientError, BotoCoreError) as e:
            raise to_service_error(e, f"Creating SNS topic {name}") from e
        topic_arn = resp["TopicArn"]
        logger.info("SNS topic ready name=%s arn=%s", name, topic_arn)
        return topic_arn

    def subscribe(self, topic_arn: str, endpoint_arn: str, protocol: str = "sqs") -> str:
        try:
            resp = self._sns.subscribe(TopicArn=topic_arn, Protocol=protocol, Endpoint=endpoint_arn)
        except (ClientError, BotoCoreError) as e:
            raise to_service_error(e, f"Subscribing {endpoint_arn} to {topic_arn}") from e
        subscription_arn = resp["SubscriptionArn"]
        logger.info("SNS subscription created topic=%s endpoint=%s arn=%s", topic_arn, endpoint_arn, subscription_arn)
        return subscription_arn

    def unsubscribe(self, subscription_arn: str) -> None:
        try:
            self._sns.unsubscribe(SubscriptionArn=subscription_arn)
        except (ClientError, BotoCoreError) as e:
            raise to_service_error(e, f"Removing subscription {subscription_arn}") from e
        logger.info("SNS subscription removed arn=%s", subscription_arn)

    def delete_topic(self, topic_arn: str) -> None:
        try:
            self._sns.delete_topic(TopicArn=topic_arn)
        except (ClientError, BotoCoreError) as e:
            raise to_service_error(e, f"Deleting SNS topic {topic_arn}") from e
        logger.info("SNS topic deleted arn=%s", topic_arn)
