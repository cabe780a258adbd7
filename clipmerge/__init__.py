"""clipmerge: video concatenation jobs backed by Supabase and ffmpeg."""

__version__ = "0.1.0"
