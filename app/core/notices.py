"""Human-readable messages returned with every API outcome."""

STORY_GENERATED = "Story generated successfully!"
SETTING_REQUIRED = "Please provide a setting for your story"
GENERATION_FAILED = "Failed to generate story. Please try again."

STORY_SAVED = "Story saved to your library!"
SAVE_FAILED = "Failed to save story"

STORY_DELETED = "Story deleted"
DELETE_FAILED = "Failed to delete story"

LIST_FAILED = "Failed to load your library"
STORY_NOT_FOUND = "Story not found"
NO_MATCHING_STORIES = "Try adjusting your filters"
EMPTY_LIBRARY = "Start creating your first epic tale!"

NARRATION_STARTED = "Audio narration started!"
NARRATION_STOPPED = "Audio stopped"
NARRATION_IDLE = "No narration is playing"
NARRATION_UNSUPPORTED = "Text-to-speech is not supported on this host"
NARRATION_FAILED = "Failed to generate audio"
