# Event codes logged and returned as `errorCode` by the lookup_url lambda
MISSING_SHORTCODE = 'MISSING_SHORTCODE'
ENTRY_NOT_FOUND = 'ENTRY_NOT_FOUND'
UNKNOWN_RESOURCE = 'UNKNOWN_RESOURCE'
LOOKUP_SUCCESS = 'LOOKUP_SUCCESS'
