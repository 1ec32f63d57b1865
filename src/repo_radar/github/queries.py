"""GraphQL documents sent to the GitHub API."""

_OWNER_FIELDS = """
      owner {
        __typename
        login
        avatarUrl
      }
"""

REPOSITORY_QUERY = (
    """
  query GetRepository($owner: String!, $name: String!, $since: GitTimestamp!) {
    repository(owner: $owner, name: $name) {
      id
      name
      nameWithOwner
      description
      url
      stargazerCount
      forkCount
      watchers {
        totalCount
      }
      primaryLanguage {
        name
      }
      repositoryTopics(first: 10) {
        nodes {
          topic {
            name
          }
        }
      }
      createdAt
      updatedAt
      pushedAt
      isArchived
      isPrivate
"""
    + _OWNER_FIELDS
    + """
      licenseInfo {
        name
        key
      }
      releases {
        totalCount
      }
      issues(states: [OPEN]) {
        totalCount
      }
      closedIssues: issues(states: [CLOSED]) {
        totalCount
      }
      pullRequests(states: [OPEN]) {
        totalCount
      }
      closedPullRequests: pullRequests(states: [CLOSED]) {
        totalCount
      }
      mergedPullRequests: pullRequests(states: [MERGED]) {
        totalCount
      }
      defaultBranchRef {
        target {
          ... on Commit {
            history {
              totalCount
            }
            historyLastMonth: history(since: $since) {
              totalCount
            }
          }
        }
      }
    }
  }
"""
)

MINIMAL_REPOSITORY_QUERY = (
    """
  query GetMinimalRepository($owner: String!, $name: String!) {
    repository(owner: $owner, name: $name) {
      id
      name
      nameWithOwner
      description
      url
      stargazerCount
      forkCount
      watchers { totalCount }
      primaryLanguage { name }
      createdAt
      updatedAt
      pushedAt
      isArchived
      isPrivate
"""
    + _OWNER_FIELDS
    + """
    }
  }
"""
)

# mentionableUsers is a rough proxy for the contributor count.
CONTRIBUTOR_PROXY_QUERY = """
  query GetContributors($owner: String!, $name: String!) {
    repository(owner: $owner, name: $name) {
      mentionableUsers(first: 1) {
        totalCount
      }
    }
  }
"""

SEARCH_REPOSITORIES_QUERY = (
    """
  query SearchRepositories($searchQuery: String!, $first: Int!, $after: String) {
    search(query: $searchQuery, type: REPOSITORY, first: $first, after: $after) {
      repositoryCount
      pageInfo {
        hasNextPage
        endCursor
      }
      nodes {
        ... on Repository {
          id
          name
          nameWithOwner
          description
          url
          stargazerCount
          forkCount
          watchers {
            totalCount
          }
          primaryLanguage {
            name
          }
          repositoryTopics(first: 5) {
            nodes {
              topic {
                name
              }
            }
          }
          createdAt
          updatedAt
          pushedAt
          isArchived
          isPrivate
"""
    + _OWNER_FIELDS
    + """
          licenseInfo {
            name
            key
          }
        }
      }
    }
  }
"""
)
