from enum import Enum


class UserRole(str, Enum):
    ADMIN = "admin"
    AGENT = "agent"

    def __str__(self):
        return self.value


class SiteType(str, Enum):
    BUSINESS = "business"
    ECOMMERCE = "ecommerce"
    WEBAPP = "webapp"
    LANDING = "landing"

    def __str__(self):
        return self.value


class DesignLevel(str, Enum):
    TEMPLATE = "template"
    CUSTOM = "custom"
    PREMIUM = "premium"

    def __str__(self):
        return self.value


class Timeline(str, Enum):
    RUSH = "rush"
    STANDARD = "standard"
    FLEXIBLE = "flexible"

    def __str__(self):
        return self.value


class Location(str, Enum):
    US = "us"
    INTERNATIONAL = "international"

    def __str__(self):
        return self.value
