"""Fixed user-facing messages for the settings API.

Messages never include setting values.
"""

RESOURCE_NOT_FOUND = "Resource not found"
PROBLEM_FINDING_SETTING = "Problem finding setting: {key}"
ACCESS_CORE_SETTING_FROM_EXT_REQ = "Attempted to access core setting from external request"
NO_PERMISSION_TO_BROWSE_SETTINGS = "You do not have permission to browse settings."
NO_PERMISSION_TO_READ_SETTINGS = "You do not have permission to read settings."
NO_PERMISSION_TO_EDIT_SETTINGS = "You do not have permission to edit settings."
NO_PERMISSION_TO_ACTION = "You do not have permission to perform this action"
ACTIVE_THEME_SET_VIA_API = "Attempted to change active_theme via settings API"
ACTIVE_THEME_SET_VIA_API_HELP = "Please activate theme via the themes API endpoints instead"
NO_ROOT_KEY_PROVIDED = "No root key ('{doc_name}') provided."
EMPTY_EDIT_BATCH = "No settings provided to edit."
MISSING_SETTING_KEY = "Every setting in the batch needs a key."
INVALID_SETTINGS_DOCUMENT = "Validation failed for '{doc_name}'."
ROUTES_FILE_UNREADABLE = "Could not read the routes configuration file."
INVALID_ROUTES_CONFIG = "The routes configuration is invalid: {reason}"

NO_PERMISSION_BY_ACTION = {
    "browse": NO_PERMISSION_TO_BROWSE_SETTINGS,
    "read": NO_PERMISSION_TO_READ_SETTINGS,
    "edit": NO_PERMISSION_TO_EDIT_SETTINGS,
}
