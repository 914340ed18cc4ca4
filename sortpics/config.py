"""
Configuration constants for sortpics.
"""

# --- File Type Definitions ---
# RAW formats eligible for --raw-path rerouting
RAW_EXTS = {
    '.arw', '.crw', '.cr2', '.dng', '.mrw', '.nef', '.nrw', '.orf', '.pef',
    '.ptx', '.raw', '.rw2', '.rwl', '.srf', '.sr2', '.srw', '.x3f',
}
JPEG_EXTS = {'.jpg', '.jpeg', '.jpe'}
IMAGE_EXTS = {'.png', '.gif', '.heic', '.heif', '.webp', '.tif', '.tiff', '.psd'}
VIDEO_EXTS = {'.mp4', '.mov', '.m4v', '.avi', '.mts', '.m2ts', '.3gp', '.mpg', '.mpeg', '.wmv'}

# Extension to format id. A file whose extension is absent here is "unsupported".
EXT_TO_FORMAT = {}
for ext in RAW_EXTS: EXT_TO_FORMAT[ext] = ext[1:].upper()
for ext in JPEG_EXTS: EXT_TO_FORMAT[ext] = 'JPEG'
for ext in IMAGE_EXTS: EXT_TO_FORMAT[ext] = ext[1:].upper()
for ext in VIDEO_EXTS: EXT_TO_FORMAT[ext] = ext[1:].upper()
EXT_TO_FORMAT['.tif'] = 'TIFF'
EXT_TO_FORMAT['.heif'] = 'HEIC'
EXT_TO_FORMAT['.mpg'] = 'MPEG'

# Formats exifread can parse
EXIFREAD_FORMATS = {'JPEG', 'TIFF', 'HEIC', 'PNG', 'WEBP'} | {ext[1:].upper() for ext in RAW_EXTS}

# --- Metadata Parsing ---
# First populated tag wins; later tags are never consulted.
DATE_TAGS = [
    'DateTimeOriginal',
    'DateTimeDigitized',
    'CreateDate',
]

SUBSEC_TAGS = [
    'SubSecTime',
    'SubSecTimeOriginal',
    'SubSecDigitized',
    'SubSecTimeDigitized',
]

# Timestamp tags eligible for rewrite after a date delta.
# Value: True if the tag carries sub-seconds.
REWRITE_TAGS = {
    'DateTimeOriginal': False,
    'DateTimeDigitized': False,
    'CreateDate': False,
    'SubSecDateTimeOriginal': True,
    'SubSecDateTimeDigitized': True,
    'SubSecCreateDate': True,
}

EXIF_DATE_FORMAT = "%Y:%m:%d %H:%M:%S"

# Vendor prefixes collapsed to a short canonical device name
DEVICE_REWRITES = [
    ('Lg', 'Lg'),
    ('ResearchInMotion', 'RIM'),
    ('Nikon', 'Nikon'),
]
UNKNOWN_DEVICE = "Unknown"

# Directory-name parsing (logic level 1)
DIR_DATE_STRIP = "_- "
DIR_DATE_MIN_DIGITS = 4

# --- Naming ---
FILE_FORMAT = "%Y%m%d-%H%M%S"
PATH_FORMAT = "%Y/%m/%Y-%m-%d"
INCREMENT_WIDTH = 4

# --- Cleanup ---
# Exact names, or "re:" prefixed regular expressions matched against the base name
JUNK_PATTERNS = [
    '.DS_Store',
    'Thumbs.db',
    'desktop.ini',
    'ZbThumbnail.info',
    r're:^\._',
    r're:(?i)\.(thm|ctg)$',
]

# --- Hashing ---
HASH_CHUNK_SIZE = 64 * 1024  # 64 KB chunks for reading

LOG_FILE_NAME = "sortpics.log"
