from abc import ABC, abstractmethod

from app.adapters.rate_limit.base import AbstractAsyncRateLimiter, AbstractRateLimiter
from app.adapters.rate_limit.cancellation import CancellationToken
from app.schemas.document import Document, DocumentCreateResult

JSON_CONTENT_TYPE = "application/json"


def build_headers(signature: str) -> dict[str, str]:
	"""Headers for an authenticated create-document request."""
	return {
		"Content-Type": JSON_CONTENT_TYPE,
		"Authorization": f"Bearer {signature}",
	}


class AbstractDocumentClient(ABC):
	"""Interface for blocking clients of the create-document API."""

	rate_limiter: AbstractRateLimiter

	@abstractmethod
	def create_document(
		self,
		document: Document,
		signature: str,
		*,
		cancel_token: CancellationToken | None = None,
	) -> DocumentCreateResult:
		"""Submit a document once the shared rate limit allows it.

		Args:
			document: Payload to create.
			signature: Bearer token signing the request.
			cancel_token: Optional token aborting the wait for a permit.

		Returns:
			DocumentCreateResult: Remote status and body.

		Raises:
			AcquireCancelledError: If the wait for a permit was cancelled.
			TransportAppError: If the remote API could not be reached.
		"""
		...

	def close(self) -> None:
		"""Release network resources."""
		return None


class AbstractAsyncDocumentClient(ABC):
	"""Interface for asyncio clients of the create-document API."""

	rate_limiter: AbstractAsyncRateLimiter

	@abstractmethod
	async def create_document(self, document: Document, signature: str) -> DocumentCreateResult:
		...

	async def aclose(self) -> None:
		"""Release network resources."""
		return None
