"""GraphQL queries for the Product Hunt API v2."""

HEALTH_CHECK = "query { __typename }"

GET_POSTS = """
query GetPosts($first: Int!, $after: String) {
  posts(first: $first, after: $after) {
    edges {
      node {
        id
        name
        tagline
        description
        url
        website
        votesCount
        commentsCount
        createdAt
        featuredAt
        thumbnail { type url videoUrl }
        media { type url videoUrl }
        user { id name username headline coverImage createdAt }
        topics { edges { node { id name slug } } }
        collections(first: 1) { totalCount }
        comments(first: 5) {
          edges {
            node {
              id body createdAt votesCount isVoted parentId url userId
              user { id name username headline coverImage }
            }
          }
          pageInfo { hasNextPage endCursor }
          totalCount
        }
      }
      cursor
    }
    pageInfo { hasNextPage endCursor }
    totalCount
  }
}
"""

GET_TOPICS = """
query GetTopics($first: Int!, $after: String) {
  topics(first: $first, after: $after) {
    edges {
      node {
        id
        name
        description
        slug
        followersCount
        postsCount
        createdAt
        image
        url
      }
    }
    pageInfo { hasNextPage endCursor }
    totalCount
  }
}
"""

GET_COLLECTIONS = """
query GetCollections($first: Int!, $after: String) {
  collections(first: $first, after: $after) {
    edges {
      node {
        id
        name
        tagline
        description
        url
        followersCount
        featuredAt
        coverImage
        createdAt
        user { id name username }
        posts(first: 1) { totalCount }
      }
    }
    pageInfo { hasNextPage endCursor }
    totalCount
  }
}
"""
