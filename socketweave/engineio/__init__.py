"""Engine.io handshake parameters, transport registry, sessions, content types and timestamps."""