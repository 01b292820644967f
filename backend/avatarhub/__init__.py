"""AvatarHub backend: avatar personas, prompt training and media generation."""
