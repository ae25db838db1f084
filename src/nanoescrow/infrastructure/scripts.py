"""Central registry for Redis Lua scripts used across the application.

This module contains Redis Lua scripts that are registered at application startup
for EVALSHA optimization. The scripts return numeric status codes that indicate
the result of the operation.

Return Code Conventions:
    The Lua scripts in this module return numeric status codes as the first
    element of a tuple/array. The meanings match ``AdvanceStatus``:

    - 0: Conflict/stale - The stored record is no longer byte-for-byte the one
         the caller read, or (for "save_channel_if_absent") the channel
         already exists. The second element contains the current state for
         reference.

    - 1: Success saved - The operation successfully saved the new state. The
         second element contains the saved state JSON.

    - 2: Channel not found - The channel key does not exist in Redis. The
         second element is an empty string.

    The caller computes the new state JSON from a record it read and passes
    that record along; the script writes only if the stored value is still
    exactly that record. Amount and capacity checks happen in Python, so no
    JSON numbers are decoded in Lua.
"""

ESCROW_SCRIPTS = {
    "compare_and_advance_channel": """
        local channel_key = KEYS[1]
        local new_val = ARGV[1]
        local expected_raw = ARGV[2]

        local current_raw = redis.call('GET', channel_key)
        if not current_raw then
            return {2, ''}
        end

        if current_raw ~= expected_raw then
            return {0, current_raw}
        end

        redis.call('SET', channel_key, new_val)
        return {1, new_val}
    """,
    "save_channel_if_absent": """
        local channel_key = KEYS[1]
        local channel_json = ARGV[1]

        local current_raw = redis.call('GET', channel_key)
        if current_raw then
            return {0, current_raw}
        end

        redis.call('SET', channel_key, channel_json)
        return {1, channel_json}
    """,
}
