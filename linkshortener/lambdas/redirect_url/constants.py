# Event codes logged and returned as `errorCode` by the redirect_url lambda
MISSING_SHORTCODE = 'MISSING_SHORTCODE'
ENTRY_NOT_FOUND = 'ENTRY_NOT_FOUND'
ENTRY_EXPIRED = 'ENTRY_EXPIRED'
PASSWORD_REQUIRED = 'PASSWORD_REQUIRED'
PASSWORD_MISMATCH = 'PASSWORD_MISMATCH'
REDIRECT_SUCCESS = 'REDIRECT_SUCCESS'
