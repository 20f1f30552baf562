# Event codes logged and returned as `errorCode` by the shorten_url lambda
INVALID_JSON = 'INVALID_JSON'
MISSING_URL = 'MISSING_URL'
INVALID_URL = 'INVALID_URL'
INVALID_SHORTCODE = 'INVALID_SHORTCODE'
INVALID_PASSWORD = 'INVALID_PASSWORD'
INVALID_EXPIRATION = 'INVALID_EXPIRATION'
SHORTCODE_TAKEN = 'SHORTCODE_TAKEN'
SHORTCODE_GENERATION_FAILED = 'SHORTCODE_GENERATION_FAILED'
SHORTEN_SUCCESS = 'SHORTEN_SUCCESS'
