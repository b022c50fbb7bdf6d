"""Client-side engine for the MIDI-framed Firmata pin-control protocol."""
