"""
AWS Bedrock LLM Provider.
"""

import asyncio
import json
import logging
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..errors import BackendError, ConfigurationError

logger = logging.getLogger(__name__)


class BedrockBackend:
    """
    AWS Bedrock LLM backend.

    Supports Claude models via Bedrock. boto3 is synchronous, so each call
    runs in a worker thread; the client itself is thread-safe and shared.
    """

    name = "bedrock"
    DEFAULT_MODEL = "us.anthropic.claude-sonnet-4-20250514-v1:0"

    def __init__(
        self,
        aws_access_key_id: Optional[str],
        aws_secret_access_key: Optional[str] = None,
        model_id: str = DEFAULT_MODEL,
        region: str = "us-east-1",
        client: Optional[Any] = None,
    ):
        """
        Initialize Bedrock backend.

        Args:
            aws_access_key_id: AWS access key (required)
            aws_secret_access_key: AWS secret key
            model_id: Bedrock model ID
            region: AWS region
            client: Prebuilt bedrock-runtime client, mainly for tests

        Raises:
            ConfigurationError: If no access key is supplied
        """
        if not aws_access_key_id:
            raise ConfigurationError("AWS_ACCESS_KEY_ID is required for Bedrock")

        self.model_id = model_id
        self.region = region

        self._client = client or boto3.client(
            "bedrock-runtime",
            region_name=region,
            aws_access_key_id=aws_access_key_id,
            aws_secret_access_key=aws_secret_access_key,
        )
        logger.info(f"Bedrock backend initialized: {model_id} in {region}")

    async def generate(self, prompt: str, *, max_tokens: int, temperature: float) -> str:
        """Generate a completion; runs the blocking invoke in a thread."""
        return await asyncio.to_thread(self._invoke, prompt, max_tokens, temperature)

    def _invoke(self, prompt: str, max_tokens: int, temperature: float) -> str:
        body = {
            "anthropic_version": "bedrock-2023-05-31",
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [
                {
                    "role": "user",
                    "content": [{"type": "text", "text": prompt}]
                }
            ]
        }

        try:
            response = self._client.invoke_model(
                modelId=self.model_id,
                body=json.dumps(body),
                contentType="application/json",
                accept="application/json",
            )
        except ClientError as e:
            error = e.response.get("Error", {})
            status_code = e.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
            message = f"{error.get('Code', 'ClientError')}: {error.get('Message', str(e))}"
            raise BackendError(message, status_code=status_code, provider=self.name) from e
        except BotoCoreError as e:
            raise BackendError(f"Bedrock transport error: {e}", provider=self.name) from e

        response_body = json.loads(response["body"].read())

        if "content" in response_body and response_body["content"]:
            return response_body["content"][0].get("text", "")

        logger.warning("Empty response from Bedrock")
        return ""
