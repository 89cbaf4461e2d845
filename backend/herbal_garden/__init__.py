"""
Virtual Herbal Garden Backend

User accounts with OTP password recovery, and the admin API for the plant
catalog.
"""

__version__ = "1.0.0"
__author__ = "Virtual Herbal Garden Team"

# Application metadata
APP_INFO = {
    "title": "Virtual Herbal Garden API",
    "description": "Accounts, password recovery and catalog administration for the Virtual Herbal Garden",
    "version": __version__,
}
