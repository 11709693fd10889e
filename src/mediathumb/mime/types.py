"""MIME type constants and the processing groups they belong to."""

MIME_OCTET_STREAM = "application/octet-stream"

# Images
MIME_JPEG = "image/jpeg"
MIME_PNG = "image/png"
MIME_GIF = "image/gif"
MIME_WEBP = "image/webp"
MIME_BMP = "image/bmp"
MIME_PSD = "image/photoshop"
MIME_TIFF = "image/tiff"
MIME_ICO = "image/x-icon"
MIME_PDF = "application/pdf"

# Audio
MIME_MP3 = "audio/mpeg"
MIME_AAC = "audio/aac"
MIME_WAVE = "audio/wave"
MIME_FLAC = "audio/x-flac"
MIME_MIDI = "audio/midi"

# Video and generic containers
MIME_OGG = "application/ogg"
MIME_WEBM = "video/webm"
MIME_MKV = "video/x-matroska"
MIME_AVI = "video/avi"
MIME_MP4 = "video/mp4"
MIME_QUICKTIME = "video/quicktime"
MIME_WMV = "video/x-ms-wmv"
MIME_FLV = "video/x-flv"

# Archives
MIME_ZIP = "application/zip"
MIME_RAR = "application/x-rar-compressed"
MIME_CBZ = "application/vnd.comicbook+zip"
MIME_CBR = "application/vnd.comicbook-rar"

IMAGE_MIMES = frozenset(
    {
        MIME_JPEG,
        MIME_PNG,
        MIME_GIF,
        MIME_WEBP,
        MIME_BMP,
        MIME_PSD,
        MIME_TIFF,
        MIME_ICO,
        MIME_PDF,
    }
)

AUDIO_MIMES = frozenset({MIME_MP3, MIME_AAC, MIME_WAVE, MIME_FLAC, MIME_MIDI})

VIDEO_MIMES = frozenset(
    {
        MIME_OGG,
        MIME_WEBM,
        MIME_MKV,
        MIME_AVI,
        MIME_MP4,
        MIME_QUICKTIME,
        MIME_WMV,
        MIME_FLV,
    }
)

ARCHIVE_MIMES = frozenset({MIME_ZIP, MIME_RAR})

# Formats without a fixed raster size; dimension limits do not apply
PASS_THROUGH_MIMES = frozenset({MIME_PDF})
