"""
Constants and configuration values for 0xFSM.

This module centralizes all constant values, field names and
configuration settings used by the project store and the editor window.
"""

# Application identity written into every saved project
APP_NAME = "0xFSM"
APP_VERSION = "1.0.0"
APP_SLUG = "0xfsm"

# Project file constants
PROJECT_FILE_SUFFIX = ".fsm.json"
PROJECT_FILE_TEMPLATE = "{slug}-project-{timestamp}" + PROJECT_FILE_SUFFIX
PROJECT_JSON_INDENT = 2
PROJECT_ENCODING = "utf-8"
PROJECT_MIME_TYPE = "application/json;charset=utf-8"
UNSAFE_FILENAME_CHARS = ":."
FILENAME_REPLACEMENT_CHAR = "-"

# Bumped whenever NODE_FIELD_SCHEMA gains or loses a field
NODE_FIELDS_VERSION = 1

# Script files
FILE_TYPE_CLIENT = "client"
FILE_TYPE_SERVER = "server"
FILE_TYPES = (FILE_TYPE_CLIENT, FILE_TYPE_SERVER)
SCRIPT_EXTENSION = ".lua"
GRAPH_KEY_SEPARATOR = "/"

# Project field names
FIELD_PROJECT_METADATA = "projectMetadata"
FIELD_FILES = "files"
FIELD_GRAPHS = "graphs"
FIELD_SAVED_AT = "savedAt"
FIELD_APP_NAME = "appName"
FIELD_APP_VERSION = "appVersion"

# File field names
FIELD_FILE_NAME = "name"
FIELD_FILE_TYPE = "type"

# Graph field names
FIELD_NODES = "nodes"
FIELD_PARAMETERS = "parameters"
FIELD_ARGUMENT_NAMES = "argumentNames"
FIELD_SCOPE = "scope"
GRAPH_ATTRIBUTE_FIELDS = (FIELD_PARAMETERS, FIELD_ARGUMENT_NAMES, FIELD_SCOPE)

# Node field names
FIELD_NODE_ID = "id"

# Notification severities (Mantine colors in the original web editor)
SEVERITY_INFO = "info"
SEVERITY_SUCCESS = "success"
SEVERITY_WARNING = "warning"
SEVERITY_ERROR = "error"

# Notification auto-close delays in milliseconds
NOTIFY_SHORT_MS = 2500
NOTIFY_SAVED_MS = 3000
NOTIFY_DEFAULT_MS = 3500
NOTIFY_LONG_MS = 5000

# User-facing prompts
UNSAVED_LOAD_PROMPT = (
    "You have unsaved changes. Are you sure you want to load a new project? "
    "Your current changes will be lost."
)
UNSAVED_EXIT_PROMPT = "You have unsaved changes. Leave anyway?"

# UI constants
DEFAULT_WINDOW_WIDTH = 1100
DEFAULT_WINDOW_HEIGHT = 700
LOAD_FILE_FILTER = "0xFSM Projects (*.fsm.json *.fsm *.json);;All Files (*)"
