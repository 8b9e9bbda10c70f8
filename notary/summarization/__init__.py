from notary.summarization.base import BaseSummarizer
from notary.summarization.factory import SummarizerFactory
from notary.summarization.summarizer import NullSummarizer, Summarizer

__all__ = ["BaseSummarizer", "NullSummarizer", "Summarizer", "SummarizerFactory"]
