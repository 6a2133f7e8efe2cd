"""kce core engine: entity model, codecs, merge, export, history, validation."""
