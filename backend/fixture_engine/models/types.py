from typing import Callable, Dict, Hashable

# Player or team ID; the engine only needs identity.
ParticipantId = Hashable
TeamId = Hashable

# participant_id -> team_id for one event
TeamMap = Dict[ParticipantId, TeamId]

# match_number -> match id
IdFactory = Callable[[int], str]
