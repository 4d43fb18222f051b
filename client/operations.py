"""GraphQL documents used by the client."""

USER_FIELDS = """
    id
    email
    name
    avatar
"""

LOGIN_MUTATION = """
mutation Login($email: String!, $password: String!) {
  login(email: $email, password: $password) {
    accessToken
    user { %s }
  }
}
""" % USER_FIELDS

REGISTER_MUTATION = """
mutation Register($email: String!, $password: String!, $name: String) {
  register(email: $email, password: $password, name: $name) {
    accessToken
    user { %s }
  }
}
""" % USER_FIELDS

GOOGLE_AUTH_MUTATION = """
mutation AuthWithGoogle($idToken: String!) {
  authWithGoogle(idToken: $idToken) {
    accessToken
    user { %s }
  }
}
""" % USER_FIELDS

REFRESH_TOKEN_MUTATION = """
mutation RefreshToken {
  refreshToken {
    accessToken
    user { %s }
  }
}
""" % USER_FIELDS

LOGOUT_MUTATION = """
mutation Logout {
  logout
}
"""

LOGOUT_ALL_MUTATION = """
mutation LogoutAll {
  logoutAll
}
"""

GET_ME = """
query GetMe {
  me { %s }
}
""" % USER_FIELDS
