# Names of the events exchanged with clients over the WebSocket.
# Every frame is {"event": <name>, "data": <payload>}.

# Data is the error message string
ERROR_EVENT = "error"

# Data is the participant id, sent to the joining connection only
USER_ID_EVENT = "userId"

# No data, acknowledged with the new game id
CREATE_GAME_EVENT = "createGame"

# Data is {gameId, name, role, side?}
JOIN_GAME_EVENT = "joinGame"

# Data is the serialized session state
GAME_UPDATE_EVENT = "gameUpdate"

# Data is the move in UCI format
MAKE_MOVE_EVENT = "makeMove"

# Emitted when everything is loaded
# No data
READY_EVENT = "ready"

# Data is the new, terminal, status
GAME_STATUS_CHANGED_EVENT = "gameStatusChanged"

# No data, sent right before an expired game is deleted
GAME_EXPIRED_EVENT = "gameExpired"

# Data is the message text
SEND_MESSAGE_EVENT = "sendMessage"

# Data is {name, message}
MESSAGE_EVENT = "message"

# No data, the sender leaves its game but keeps the connection
LEAVE_GAME_EVENT = "leaveGame"
