# Event codes logged and returned as `errorCode` by the delete_url lambda
MISSING_PATH_PARAMETERS = 'MISSING_PATH_PARAMETERS'
MALFORMED_DELETION_TAG = 'MALFORMED_DELETION_TAG'
DELETION_NOT_AUTHORIZED = 'DELETION_NOT_AUTHORIZED'
DELETE_SUCCESS = 'DELETE_SUCCESS'
