"""Note refinement: word + context in, HTML description out."""
from .chains import build_refine_chain, parse_note_description, refine_note, render_description
from .models import NoteDescription, RefinedNote, RefineRequest
