# util/constants.py
class InternalURIs:
    ROOT = "/"
    HEALTH = "/healthz"


class ExternalURIs:
    GITHUB_API = "https://api.github.com"
