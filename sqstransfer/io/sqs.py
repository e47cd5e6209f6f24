from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional, Sequence

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from sqstransfer.config import DEFAULT_WAIT_SECONDS, TransferConfig
from sqstransfer.core.models import MAX_BATCH_SIZE, Message, SendBatchResult, SendEntry
from sqstransfer.errors import DeleteError, FetchError, SendError

logger = logging.getLogger("sqstransfer.io.sqs")


class SQSClient:
    """AWS SQS client implementing the batch transport used by transfer workers."""

    def __init__(
        self,
        region: str,
        endpoint_url: Optional[str] = None,
        wait_seconds: int = DEFAULT_WAIT_SECONDS,
        visibility_timeout: Optional[int] = None,
    ):
        """
        Initialize SQS client.

        Args:
            region: AWS region (e.g., "us-east-1")
            endpoint_url: Optional endpoint override (e.g., LocalStack)
            wait_seconds: Long polling wait time for fetch (0-20 seconds)
            visibility_timeout: Optional visibility timeout applied to fetched messages
        """
        self.region = region
        self.endpoint_url = endpoint_url
        self.wait_seconds = wait_seconds
        self.visibility_timeout = visibility_timeout
        self.client = boto3.client('sqs', region_name=region, endpoint_url=endpoint_url)

    @classmethod
    def from_config(cls, config: TransferConfig) -> SQSClient:
        return cls(
            config.region,
            endpoint_url=config.endpoint_url,
            wait_seconds=config.wait_seconds,
            visibility_timeout=config.visibility_timeout,
        )

    def fetch_batch(self, queue_url: str, max_messages: int = MAX_BATCH_SIZE) -> List[Message]:
        """
        Receive up to max_messages messages (at most 10).

        Args:
            queue_url: SQS queue URL
            max_messages: Maximum number of messages to receive (1-10)

        Returns:
            List of Message, empty if no messages were available

        Raises:
            FetchError: If the receive request fails
        """
        kwargs: Dict[str, Any] = {
            'QueueUrl': queue_url,
            'MaxNumberOfMessages': min(max_messages, MAX_BATCH_SIZE),
            'WaitTimeSeconds': self.wait_seconds,
            'MessageAttributeNames': ['All'],
        }
        if self.visibility_timeout is not None:
            kwargs['VisibilityTimeout'] = self.visibility_timeout

        try:
            response = self.client.receive_message(**kwargs)
        except (ClientError, BotoCoreError) as e:
            raise FetchError(f"Failed to receive messages from {queue_url}: {e}") from e

        return [
            Message(
                message_id=msg.get('MessageId', ''),
                body=msg.get('Body', ''),
                receipt_handle=msg.get('ReceiptHandle'),
                message_attributes=msg.get('MessageAttributes', {}),
            )
            for msg in response.get('Messages', [])
        ]

    def send_batch(self, queue_url: str, entries: Sequence[SendEntry]) -> SendBatchResult:
        """
        Send entries in a single SendMessageBatch request.

        Message attributes are forwarded as received (StringValue/BinaryValue + DataType).

        Args:
            queue_url: Destination SQS queue URL
            entries: Up to 10 entries, ids unique within the batch

        Returns:
            SendBatchResult with successful ids and failed ids mapped to their reason

        Raises:
            SendError: If the request itself fails
        """
        request_entries = []
        for entry in entries:
            request_entry: Dict[str, Any] = {
                'Id': entry.entry_id,
                'MessageBody': entry.body,
            }
            if entry.message_attributes:
                request_entry['MessageAttributes'] = _sendable_attributes(entry.message_attributes)
            request_entries.append(request_entry)

        try:
            response = self.client.send_message_batch(
                QueueUrl=queue_url,
                Entries=request_entries,
            )
        except (ClientError, BotoCoreError) as e:
            raise SendError(f"Failed to send message batch to {queue_url}: {e}") from e

        successful = frozenset(s['Id'] for s in response.get('Successful', []))
        failed = {
            f['Id']: f"{f.get('Code', 'Unknown')}: {f.get('Message', '')}"
            for f in response.get('Failed', [])
        }
        return SendBatchResult(successful=successful, failed=failed)

    def delete_batch(self, queue_url: str, receipt_handles: Sequence[str]) -> int:
        """
        Delete messages in a single DeleteMessageBatch request.

        Per-entry failures are logged but not raised: those messages reappear once
        their visibility timeout expires.

        Args:
            queue_url: Source SQS queue URL
            receipt_handles: Receipt handles from received messages

        Returns:
            Number of messages deleted

        Raises:
            DeleteError: If the request itself fails
        """
        entries = [
            {'Id': str(i), 'ReceiptHandle': handle}
            for i, handle in enumerate(receipt_handles)
        ]

        try:
            response = self.client.delete_message_batch(
                QueueUrl=queue_url,
                Entries=entries,
            )
        except (ClientError, BotoCoreError) as e:
            raise DeleteError(f"Failed to delete message batch from {queue_url}: {e}") from e

        for f in response.get('Failed', []):
            logger.warning(
                f"Failed to delete entry {f.get('Id')} from {queue_url}: "
                f"{f.get('Code', 'Unknown')} {f.get('Message', '')}"
            )

        return len(response.get('Successful', []))

    def get_queue_stats(self, queue_url: str) -> dict:
        """
        Get queue statistics.

        Args:
            queue_url: Queue URL

        Returns:
            Dict with approximate message counts
        """
        try:
            response = self.client.get_queue_attributes(
                QueueUrl=queue_url,
                AttributeNames=['All']
            )
        except (ClientError, BotoCoreError) as e:
            raise RuntimeError(f"Failed to get queue attributes for {queue_url}: {e}") from e

        attrs = response.get('Attributes', {})

        return {
            'approximate_messages': int(attrs.get('ApproximateNumberOfMessages', 0)),
            'approximate_messages_not_visible': int(attrs.get('ApproximateNumberOfMessagesNotVisible', 0)),
            'approximate_messages_delayed': int(attrs.get('ApproximateNumberOfMessagesDelayed', 0)),
        }


def _sendable_attributes(attributes: Dict[str, Any]) -> Dict[str, Any]:
    # ReceiveMessage also returns list-valued keys that SendMessageBatch rejects when empty
    sendable = {}
    for name, value in attributes.items():
        sendable[name] = {
            k: v for k, v in value.items()
            if k in ('DataType', 'StringValue', 'BinaryValue')
        }
    return sendable
