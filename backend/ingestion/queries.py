"""GraphQL documents sent to the WordPress content source."""

from __future__ import annotations


LITE_ROOM_FIELDS = """
fragment LiteEscapeRoomFields on EscapeRoom {
  id
  databaseId
  title
  slug
  date
  featuredImage { node { sourceUrl altText } }
  countries { nodes { name } }
  states { nodes { name } }
  cities { nodes { name } }
  roomCategories { nodes { name } }
  escapeRoomDetails {
    status
    fullAddress
    postalCode
    latitude
    longitude
    phone
    website
    rating
    reviewCount
    difficulty
    price
    teamSize
    duration
  }
}
"""

ROOM_FIELDS = """
fragment EscapeRoomFields on EscapeRoom {
  id
  databaseId
  title
  content
  slug
  date
  featuredImage { node { sourceUrl altText mediaDetails { width height } } }
  countries { nodes { id name slug } }
  states { nodes { id name slug } }
  cities { nodes { id name slug } }
  roomCategories { nodes { id name slug } }
  escapeRoomDetails {
    status
    fullAddress
    postalCode
    latitude
    longitude
    checkUrl
    phone
    website
    orderLinks
    difficulty
    teamSize
    duration
    price
    rating
    reviewCount
    workingHours
    businessHours { dayOfWeek openTime closeTime isClosed }
    amenities { amenityName amenityCategory isAvailable }
  }
}
"""

BLOG_POST_FIELDS = """
fragment BlogPostFields on Post {
  id
  databaseId
  title
  content
  excerpt
  slug
  date
  modified
  featuredImage { node { sourceUrl altText mediaDetails { width height } } }
  author { node { name avatar { url } } }
  categories { nodes { id name slug } }
  tags { nodes { id name slug } }
}
"""

GET_ESCAPE_ROOMS = (
    LITE_ROOM_FIELDS
    + """
query GetEscapeRooms($first: Int = 100, $after: String) {
  escapeRooms(first: $first, after: $after) {
    pageInfo { hasNextPage endCursor }
    nodes { ...LiteEscapeRoomFields }
  }
}
"""
)

GET_ESCAPE_ROOM_BY_ID = (
    ROOM_FIELDS
    + """
query GetEscapeRoomById($id: ID!) {
  escapeRoom(id: $id, idType: DATABASE_ID) { ...EscapeRoomFields }
}
"""
)

GET_ESCAPE_ROOM_BY_SLUG = (
    ROOM_FIELDS
    + """
query GetEscapeRoomBySlug($slug: ID!) {
  escapeRoom(id: $slug, idType: SLUG) { ...EscapeRoomFields }
}
"""
)

GET_BLOG_POSTS = (
    BLOG_POST_FIELDS
    + """
query GetBlogPosts($first: Int = 10, $after: String) {
  posts(first: $first, after: $after, where: { status: PUBLISH, orderby: { field: DATE, order: DESC } }) {
    pageInfo { hasNextPage endCursor }
    nodes { ...BlogPostFields }
  }
}
"""
)

GET_BLOG_POST_BY_SLUG = (
    BLOG_POST_FIELDS
    + """
query GetBlogPostBySlug($slug: ID!) {
  post(id: $slug, idType: SLUG) { ...BlogPostFields }
}
"""
)

GET_RECENT_BLOG_POSTS = (
    BLOG_POST_FIELDS
    + """
query GetRecentBlogPosts($first: Int = 5) {
  posts(first: $first, where: { status: PUBLISH, orderby: { field: DATE, order: DESC } }) {
    pageInfo { hasNextPage endCursor }
    nodes { ...BlogPostFields }
  }
}
"""
)

PING = "query Ping { __typename }"
