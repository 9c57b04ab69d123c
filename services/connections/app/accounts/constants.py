"""
Accounts domain — enums and profile field groups.

Field groups are expressed as ``ProfileField`` members so every layer of the
visibility resolver and every admin-editable display flag speaks the same
enumerated vocabulary.
"""
from __future__ import annotations

import enum


class AccountStatus(str, enum.Enum):
    PENDING = "pending"      # Signed up, awaiting admin approval
    APPROVED = "approved"
    BLOCKED = "blocked"      # Disabled by an administrator


class Gender(str, enum.Enum):
    MALE = "male"
    FEMALE = "female"


class MaritalStatus(str, enum.Enum):
    SINGLE = "single"
    NEVER_MARRIED = "never_married"
    DIVORCED = "divorced"
    WIDOWED = "widowed"


class ProfileField(str, enum.Enum):
    NAME = "name"
    FATHER_NAME = "father_name"
    MOTHER_NAME = "mother_name"
    AGE = "age"
    DATE_OF_BIRTH = "date_of_birth"
    GENDER = "gender"
    MARITAL_STATUS = "marital_status"
    DISABILITY = "disability"
    COUNTRY_OF_ORIGIN = "country_of_origin"
    LOCATION = "location"
    STATE = "state"
    DISTRICT = "district"
    CITY = "city"
    EDUCATION = "education"
    OCCUPATION = "occupation"
    LANGUAGES_KNOWN = "languages_known"
    NUMBER_OF_SIBLINGS = "number_of_siblings"
    ABOUT = "about"
    LOOKING_FOR = "looking_for"
    PROFILE_PHOTO = "profile_photo"
    GALLERY_IMAGES = "gallery_images"
    CONTACT = "contact"
    EMAIL = "email"
    ID_NUMBER = "id_number"
    ID_CARD_PHOTO = "id_card_photo"
    IS_PUBLIC = "is_public"


ALL_PROFILE_FIELDS: tuple[ProfileField, ...] = tuple(ProfileField)

# Hidden from every non-self, non-admin viewer
ALWAYS_HIDDEN_FIELDS: frozenset[ProfileField] = frozenset({
    ProfileField.CONTACT,
    ProfileField.EMAIL,
    ProfileField.ID_CARD_PHOTO,
    ProfileField.ID_NUMBER,
})

# Re-enabled for connected viewers when the display policy opts in
CONNECTED_SENSITIVE_FIELDS: tuple[ProfileField, ...] = (
    ProfileField.EMAIL,
    ProfileField.CONTACT,
    ProfileField.ID_NUMBER,
)

# Demographic / biographical data gated on private profiles (name stays visible)
DEMOGRAPHIC_FIELDS: frozenset[ProfileField] = frozenset({
    ProfileField.AGE,
    ProfileField.LOCATION,
    ProfileField.STATE,
    ProfileField.DISTRICT,
    ProfileField.CITY,
    ProfileField.EDUCATION,
    ProfileField.OCCUPATION,
    ProfileField.FATHER_NAME,
    ProfileField.MOTHER_NAME,
    ProfileField.DATE_OF_BIRTH,
    ProfileField.MARITAL_STATUS,
    ProfileField.DISABILITY,
    ProfileField.COUNTRY_OF_ORIGIN,
    ProfileField.LANGUAGES_KNOWN,
    ProfileField.NUMBER_OF_SIBLINGS,
    ProfileField.ABOUT,
    ProfileField.LOOKING_FOR,
})

PHOTO_FIELDS: frozenset[ProfileField] = frozenset({
    ProfileField.PROFILE_PHOTO,
    ProfileField.GALLERY_IMAGES,
})

# Fields governed by the admin's global display flags (applied last)
BASE_DISPLAY_FIELDS: tuple[ProfileField, ...] = (
    ProfileField.NAME,
    ProfileField.AGE,
    ProfileField.LOCATION,
    ProfileField.EDUCATION,
    ProfileField.OCCUPATION,
    ProfileField.ABOUT,
    ProfileField.PROFILE_PHOTO,
    ProfileField.FATHER_NAME,
    ProfileField.MOTHER_NAME,
)

# Keys an admin may set in the display policy, with their defaults
DEFAULT_DISPLAY_FIELDS: dict[str, bool] = {
    ProfileField.NAME.value: True,
    ProfileField.AGE.value: True,
    ProfileField.LOCATION.value: True,
    ProfileField.EDUCATION.value: True,
    ProfileField.OCCUPATION.value: True,
    ProfileField.ABOUT.value: True,
    ProfileField.PROFILE_PHOTO.value: True,
    ProfileField.FATHER_NAME.value: False,
    ProfileField.MOTHER_NAME.value: False,
    ProfileField.CONTACT.value: False,
    ProfileField.EMAIL.value: False,
    ProfileField.ID_NUMBER.value: False,
}

MAX_GALLERY_IMAGES: int = 8
