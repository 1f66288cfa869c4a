import re

from errors import InvalidReferenceError
from .schemas import RepositoryIdentity

# github.com/<owner>/<name> in https, bare or SSH (git@github.com:owner/name) form
GITHUB_URL_PATTERN = re.compile(r"github\.com[/:]([^/\s?#]+)/([^/\s?#]+)", re.IGNORECASE)


def parse_repo_url(repo_url: str) -> RepositoryIdentity:
    """Extract owner/name from a free-form GitHub URL. No network access."""
    if not isinstance(repo_url, str):
        raise InvalidReferenceError(str(repo_url))

    match = GITHUB_URL_PATTERN.search(repo_url.strip())
    if not match:
        raise InvalidReferenceError(repo_url)

    owner, name = match.group(1), match.group(2)
    if name.endswith(".git"):
        name = name[:-4]
    if not name:
        raise InvalidReferenceError(repo_url)

    return RepositoryIdentity(owner=owner, name=name)
