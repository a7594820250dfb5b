"""Sets up the githubkit client."""

from typing import TypeAlias

from githubkit import GitHub
from githubkit.auth import TokenAuthStrategy, UnauthAuthStrategy

GitHubClient: TypeAlias = GitHub[TokenAuthStrategy] | GitHub[UnauthAuthStrategy]


def get_github_client(github_pat_token: str | None, github_api_url: str) -> GitHubClient:
    """Returns a GitHub client, authenticated with a PAT when one is given.

    Without a token the client is anonymous, which only works for public
    repositories and has a much lower rate limit. Supports a custom base URL
    for GitHub Enterprise Server (GHES).
    """
    # Rate limits must reach the caller instead of being retried inside
    # githubkit, and cached responses would hide remote changes from sync.
    if github_pat_token:
        return GitHub(auth=TokenAuthStrategy(github_pat_token), base_url=github_api_url, auto_retry=False, http_cache=False)
    return GitHub(auth=UnauthAuthStrategy(), base_url=github_api_url, auto_retry=False, http_cache=False)
