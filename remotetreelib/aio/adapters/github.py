"""
GitHub GraphQL resolver for RemoteTreeLib.

Resolves repository objects through two GraphQL queries:

- the root, by revision expression (`object(expression: "main:docs")`)
- everything below it, by object id (`object(oid: "...")`)

Each response carries one tree level (name and oid of every entry) or
the text of one blob. HTTP and GraphQL failures are mapped onto the
resolver error taxonomy so the traversal engine can retry or record them.
"""

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Callable, Dict, List, Optional

import httpx

from ..core.adapter import AsyncObjectResolver
from ..core.reference import Directory, DirectoryEntry, Leaf, ResolvedObject, UnrecognizedObject
from ...config import DEFAULT_ENDPOINT, ClientConfig
from ...errors import (
    FatalError,
    NotFoundError,
    RateLimitedError,
    ResolutionError,
    TransientError,
)


logger = logging.getLogger(__name__)


_OBJECT_FIELDS = """
      __typename
      ... on Blob { text }
      ... on Tree { entries { name oid } }
"""

START_QUERY = """
query Start($repoOwner: String!, $repoName: String!, $revParse: String!) {
  repository(owner: $repoOwner, name: $repoName) {
    object(expression: $revParse) {%s    }
  }
}
""" % _OBJECT_FIELDS

CONT_QUERY = """
query Cont($repoOwner: String!, $repoName: String!, $oid: GitObjectID!) {
  repository(owner: $repoOwner, name: $repoName) {
    object(oid: $oid) {%s    }
  }
}
""" % _OBJECT_FIELDS


@dataclass
class RateLimitStatus:
    """GitHub API rate limit status, as reported by response headers."""
    remaining: int
    limit: int
    reset_time: int  # Unix timestamp

    @property
    def is_low(self) -> bool:
        """Check if rate limit is getting low (< 100 remaining)."""
        return self.remaining < 100


class GitHubGraphQLResolver(AsyncObjectResolver):
    """
    Resolver backed by the GitHub GraphQL API.

    Example:
        async with GitHubGraphQLResolver(token=os.environ['GITHUB_TOKEN']) as resolver:
            root = await resolver.resolve_by_revision('rust-lang', 'rust', 'master:src')
    """

    def __init__(
        self,
        endpoint: Optional[str] = None,
        token: Optional[str] = None,
        timeout: float = 30.0,
        user_agent: str = "remotetreelib",
        client: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize the resolver.

        Args:
            endpoint: GraphQL endpoint (defaults to public GitHub)
            token: Bearer token; GitHub's GraphQL API requires one
            timeout: Per-request timeout in seconds
            user_agent: User-Agent header value
            client: Pre-built httpx.AsyncClient (not closed by close())
            clock: Wall clock used to turn reset timestamps into delays
        """
        self.endpoint = endpoint or DEFAULT_ENDPOINT
        self.token = token
        self._clock = clock
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._headers = {'User-Agent': user_agent, 'Accept': 'application/json'}
        if token:
            self._headers['Authorization'] = f'Bearer {token}'
        self.rate_limit_status: Optional[RateLimitStatus] = None
        self.request_count = 0

    @classmethod
    def from_config(cls, config: ClientConfig, **kwargs) -> 'GitHubGraphQLResolver':
        return cls(
            endpoint=config.endpoint,
            token=config.token,
            timeout=config.timeout,
            user_agent=config.user_agent,
            **kwargs
        )

    async def resolve_by_revision(self, owner: str, repo: str, expression: str) -> ResolvedObject:
        data = await self._query(START_QUERY, {
            'repoOwner': owner,
            'repoName': repo,
            'revParse': expression,
        })
        return self._to_resolved(data, f"{owner}/{repo}@{expression}")

    async def resolve_by_identifier(self, owner: str, repo: str, oid: str) -> ResolvedObject:
        data = await self._query(CONT_QUERY, {
            'repoOwner': owner,
            'repoName': repo,
            'oid': oid,
        })
        return self._to_resolved(data, f"{owner}/{repo}#{oid}")

    def _to_resolved(self, data: Dict[str, Any], what: str) -> ResolvedObject:
        """Map a query's `data` payload onto Leaf / Directory / Unrecognized."""
        repository = data.get('repository')
        if repository is None:
            raise NotFoundError(f"no repository for {what}")
        obj = repository.get('object')
        if obj is None:
            raise NotFoundError(f"no object for {what}")

        kind = obj.get('__typename')
        if kind == 'Blob':
            text = obj.get('text')
            if text is None:
                raise FatalError(f"blob is binary: {what}")
            return Leaf(text)
        if kind == 'Tree':
            entries = [
                DirectoryEntry(entry['name'], entry['oid'])
                for entry in (obj.get('entries') or [])
                if entry is not None
            ]
            return Directory(tuple(entries))
        return UnrecognizedObject(kind or 'unknown')

    async def _query(self, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        """POST one GraphQL query and return its `data` member."""
        self.request_count += 1
        try:
            response = await self._client.post(
                self.endpoint,
                json={'query': query, 'variables': variables},
                headers=self._headers,
            )
        except httpx.TransportError as e:
            raise TransientError(f"request to {self.endpoint} failed: {e}", cause=e)

        self._update_rate_limit_from_headers(response.headers)
        self._raise_for_status(response)

        try:
            payload = response.json()
        except ValueError as e:
            raise TransientError(f"invalid JSON from {self.endpoint}", cause=e)

        errors = payload.get('errors')
        if errors:
            raise self._classify_graphql_errors(errors, response.headers)

        data = payload.get('data')
        if data is None:
            raise FatalError("no response")
        return data

    def _raise_for_status(self, response: httpx.Response) -> None:
        status = response.status_code
        if status < 400:
            return

        if status == 404:
            raise NotFoundError(f"HTTP 404 from {self.endpoint}")

        retry_after = self._retry_after(response.headers)
        exhausted = response.headers.get('X-RateLimit-Remaining') == '0'
        if status == 429 or (status == 403 and (retry_after is not None or exhausted)):
            raise RateLimitedError(f"HTTP {status}: rate limited", retry_after=retry_after)

        if status >= 500 or status == 408:
            raise TransientError(f"HTTP {status} from {self.endpoint}")

        raise FatalError(f"HTTP {status} from {self.endpoint}: {response.text[:200]}")

    def _retry_after(self, headers: httpx.Headers) -> Optional[float]:
        """Seconds to wait according to Retry-After or X-RateLimit-Reset."""
        value = headers.get('Retry-After')
        if value:
            try:
                return max(0.0, float(value))
            except ValueError:
                pass
            try:
                when = parsedate_to_datetime(value)
            except (TypeError, ValueError):
                when = None
            if when is not None:
                if when.tzinfo is None:
                    when = when.replace(tzinfo=timezone.utc)
                return max(0.0, when.timestamp() - self._clock())

        reset = headers.get('X-RateLimit-Reset')
        if reset and headers.get('X-RateLimit-Remaining') == '0':
            try:
                return max(0.0, float(reset) - self._clock())
            except ValueError:
                return None
        return None

    def _classify_graphql_errors(self, errors: List[Dict[str, Any]], headers: httpx.Headers) -> ResolutionError:
        """Map a GraphQL `errors` array; RATE_LIMITED carries the header reset hint."""
        types = {error.get('type') for error in errors}
        message = "; ".join(str(error.get('message', error)) for error in errors)
        if 'RATE_LIMITED' in types:
            return RateLimitedError(message, retry_after=self._retry_after(headers))
        if types == {'NOT_FOUND'}:
            return NotFoundError(message)
        return FatalError(f"errors: {message}")

    def _update_rate_limit_from_headers(self, headers: httpx.Headers) -> None:
        """Update rate limit status from response headers."""
        try:
            remaining = int(headers.get('X-RateLimit-Remaining', -1))
            limit = int(headers.get('X-RateLimit-Limit', -1))
            reset_time = int(headers.get('X-RateLimit-Reset', 0))
        except (TypeError, ValueError):
            return

        if remaining >= 0 and limit >= 0:
            self.rate_limit_status = RateLimitStatus(remaining, limit, reset_time)
            if self.rate_limit_status.is_low:
                reset = datetime.fromtimestamp(reset_time, tz=timezone.utc)
                logger.warning(
                    f"GitHub API rate limit low: {remaining}/{limit} remaining, "
                    f"resets at {reset.isoformat()}"
                )

    async def get_stats(self) -> dict:
        status = self.rate_limit_status
        return {
            'endpoint': self.endpoint,
            'requests': self.request_count,
            'rate_limit_remaining': status.remaining if status else None,
        }

    async def close(self):
        if self._owns_client:
            await self._client.aclose()
