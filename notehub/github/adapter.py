"""Remote issue source backed by the githubkit library."""

import time
from functools import wraps
from typing import Any, Awaitable, Callable, Literal, Self, TypeVar

import structlog
from githubkit import Response
from githubkit.exception import AuthCredentialError, GitHubException, RateLimitExceeded, RequestFailed
from githubkit.versions.latest.models import Issue

from notehub.github.abc import DEFAULT_PAGE_SIZE, RemoteIssueSource
from notehub.github.client import GitHubClient, get_github_client
from notehub.github.exceptions import RateLimited, RemoteNotFound, RemoteUnavailable, Unauthorized
from notehub.schemas.issue import IssuePage, IssueRecord, IssueState
from notehub.schemas.repository import RepositoryId
from notehub.utils.github import extract_label_names, login_of

logger = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def _retry_after_from_headers(headers: Any) -> float | None:
    """Seconds to wait according to retry-after or x-ratelimit-reset, if present."""
    retry_after = headers.get("retry-after")
    if retry_after:
        try:
            return float(retry_after)
        except ValueError:
            logger.warning("Invalid retry-after header value", retry_after=retry_after)
    rate_limit_reset = headers.get("x-ratelimit-reset")
    if rate_limit_reset:
        try:
            return float(max(int(rate_limit_reset) - int(time.time()), 0) + 1)
        except ValueError:
            logger.warning("Invalid x-ratelimit-reset header value", rate_limit_reset=rate_limit_reset)
    return None


def _is_rate_limit_response(exc: RequestFailed) -> bool:
    status_code = exc.response.status_code
    if status_code == 429:
        return True
    if status_code != 403:
        return False
    if exc.response.headers.get("x-ratelimit-remaining") == "0":
        return True
    try:
        message = str(exc.response.json().get("message", ""))
    except Exception:
        message = ""
    return "rate limit" in message.lower()


def translate_github_errors(func: F) -> F:
    """Decorator that turns githubkit failures into NoteHub remote errors."""

    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)
        except RateLimitExceeded as exc:
            retry_after = exc.retry_after.total_seconds() if exc.retry_after else None
            logger.warning("GitHub rate limit exceeded", function=func.__name__, retry_after=retry_after, rate_limit_type=type(exc).__name__)
            raise RateLimited(f"GitHub rate limit exceeded in {func.__name__}", retry_after=retry_after) from exc
        except RequestFailed as exc:
            status_code = exc.response.status_code
            url = getattr(exc.response, "url", None)
            if _is_rate_limit_response(exc):
                retry_after = _retry_after_from_headers(exc.response.headers)
                logger.warning("GitHub rate limit exceeded", function=func.__name__, retry_after=retry_after, status_code=status_code)
                raise RateLimited(f"GitHub rate limit exceeded in {func.__name__}", retry_after=retry_after) from exc
            if status_code in (401, 403):
                logger.error("GitHub rejected credentials", function=func.__name__, status_code=status_code, url=url)
                raise Unauthorized(f"GitHub returned {status_code}: check the token and its access to the repository") from exc
            if status_code in (404, 410):
                logger.info("GitHub resource not found", function=func.__name__, status_code=status_code, url=url)
                raise RemoteNotFound(f"GitHub returned {status_code} for {url}") from exc
            logger.error("GitHub request failed", function=func.__name__, status_code=status_code, url=url)
            raise RemoteUnavailable(f"GitHub returned {status_code} for {url}") from exc
        except AuthCredentialError as exc:
            raise Unauthorized(f"GitHub credentials are invalid: {exc}") from exc
        except GitHubException as exc:
            logger.error("GitHub request error", function=func.__name__, error=str(exc), error_type=type(exc).__name__)
            raise RemoteUnavailable(f"Could not reach GitHub: {exc}") from exc

    return wrapper  # type: ignore


def _has_next_page(response: Response[Any], received: int, per_page: int) -> bool:
    link = response.headers.get("link")
    if link is not None:
        return 'rel="next"' in link
    return received >= per_page


def issue_to_record(issue: Issue) -> IssueRecord:
    """Convert a githubkit Issue into the cached representation."""
    return IssueRecord(
        number=issue.number,
        title=issue.title,
        body=issue.body or None,
        state=IssueState(issue.state),
        author=login_of(issue.user),
        created_at=issue.created_at,
        updated_at=issue.updated_at,
        closed_at=issue.closed_at or None,
        labels=extract_label_names(issue.labels),
        comments=issue.comments,
        html_url=issue.html_url or None,
    )


class GitHubKitAdapter(RemoteIssueSource):
    """Remote issue source for GitHub, using the githubkit library."""

    def __init__(self, client: GitHubClient) -> None:
        """Initialize the adapter with an already-initialized client."""
        self.client = client

    @classmethod
    def create(cls, github_pat_token: str | None = None, github_api_url: str = "https://api.github.com") -> Self:
        """Create a new adapter for a GitHub instance."""
        logger.debug("Creating client for GitHub instance", github_api_url=github_api_url, authenticated=bool(github_pat_token))
        return cls(get_github_client(github_pat_token=github_pat_token, github_api_url=github_api_url))

    @translate_github_errors
    async def list_issues(
        self,
        repository: RepositoryId,
        state: Literal["open", "closed", "all"] = "all",
        page_cursor: str | None = None,
        per_page: int = DEFAULT_PAGE_SIZE,
    ) -> IssuePage:
        """Fetch one page of issues, skipping pull requests.

        The cursor is GitHub's page number rendered as a string; callers must
        treat it as opaque.
        """
        page = int(page_cursor) if page_cursor is not None else 1
        response: Response[list[Issue]] = await self.client.rest.issues.async_list_for_repo(
            owner=repository.owner,
            repo=repository.name,
            state=state,
            sort="created",
            direction="desc",
            per_page=per_page,
            page=page,
        )
        items: list[Issue] = response.parsed_data
        issues = [issue_to_record(item) for item in items if not item.pull_request]
        next_cursor = str(page + 1) if items and _has_next_page(response, len(items), per_page) else None
        logger.debug(
            "Fetched issue page",
            repository=str(repository),
            page=page,
            received=len(items),
            issues=len(issues),
            has_next=next_cursor is not None,
        )
        return IssuePage(issues=issues, next_cursor=next_cursor)

    @translate_github_errors
    async def get_issue(self, repository: RepositoryId, number: int) -> IssueRecord:
        """Fetch a single issue. Pull requests are reported as not found."""
        response: Response[Issue] = await self.client.rest.issues.async_get(owner=repository.owner, repo=repository.name, issue_number=number)
        issue: Issue = response.parsed_data
        if issue.pull_request:
            raise RemoteNotFound(f"#{number} in {repository} is a pull request, not an issue")
        return issue_to_record(issue)
