class ServicePaths:
    REST = "/rest/v1"
    STORAGE = "/storage/v1"
    AUTH = "/auth/v1"
    FUNCTIONS = "/functions/v1"


class AuthApiUrls:
    TOKEN = "/token"
    USER = "/user"
    LOGOUT = "/logout"


class StorageApiUrls:
    BUCKET = "/bucket"
    OBJECT = "/object"
    SIGN = "/object/sign"
