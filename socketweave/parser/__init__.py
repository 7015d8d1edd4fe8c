"""Socket.IO packet types, binary buffers, encoder and decoder."""