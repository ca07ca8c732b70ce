"""
External collaborators: geocoding, image storage, email.
"""

from salehunter.integrations.geocoding import NominatimGeocoder
from salehunter.integrations.image_storage import (
    LocalImageStorage,
    decode_base64_image,
    detect_extension,
)
from salehunter.integrations.mailer import SmtpEmailSender

__all__ = [
    "NominatimGeocoder",
    "LocalImageStorage",
    "decode_base64_image",
    "detect_extension",
    "SmtpEmailSender",
]
