import argparse
import asyncio
import logging
import sys
import wave
from collections.abc import AsyncIterator
from pathlib import Path

from speech_client.config import SpeechClientConfig
from speech_client.domain.errors import SpeechClientError
from speech_client.log_format import configure_logging

logger = logging.getLogger("speech_client")


def main() -> None:
    parser = argparse.ArgumentParser(description="Speech-to-Text gRPC client")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    parser.add_argument("--endpoint", help="Service host, optionally with :port")
    parser.add_argument("--language", help="BCP-47 language code")

    subparsers = parser.add_subparsers(dest="command", required=True)

    recognize_parser = subparsers.add_parser("recognize", help="Recognize a short WAV file")
    recognize_parser.add_argument("file", type=Path)

    stream_parser = subparsers.add_parser("stream", help="Stream a WAV file in chunks")
    stream_parser.add_argument("file", type=Path)
    stream_parser.add_argument("--realtime", action="store_true", help="Pace chunks at playback speed")

    long_parser = subparsers.add_parser("long-running", help="Recognize audio stored at a gs:// URI")
    long_parser.add_argument("uri")
    long_parser.add_argument("--poll-interval", type=float, help="Seconds between status fetches")
    long_parser.add_argument("--deadline", type=float, help="Give up after this many seconds")
    long_parser.add_argument("--no-wait", action="store_true", help="Print the operation name and exit")

    args = parser.parse_args()

    config = SpeechClientConfig()
    if args.endpoint:
        endpoint, _, port = args.endpoint.partition(":")
        config.endpoint = endpoint
        if port:
            config.port = int(port)
    if args.language:
        config.language_code = args.language

    configure_logging(args.verbose, config.log_file)

    try:
        asyncio.run(_run(args, config))
    except SpeechClientError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        sys.exit(130)


async def _run(args: argparse.Namespace, config: SpeechClientConfig) -> None:
    from speech_client.factory import create_client

    async with create_client(config) as client:
        if args.command == "recognize":
            await _recognize(client, config, args.file)
        elif args.command == "stream":
            await _stream(client, config, args.file, args.realtime)
        elif args.command == "long-running":
            await _long_running(client, config, args)


async def _recognize(client, config: SpeechClientConfig, path: Path) -> None:
    from speech_client.factory import create_recognition_config

    sample_rate, pcm = _read_wav(path)
    response = await client.recognize(create_recognition_config(config, sample_rate), pcm)
    for result in response.results:
        if result.alternatives:
            print(result.alternatives[0].transcript)


async def _stream(client, config: SpeechClientConfig, path: Path, realtime: bool) -> None:
    from speech_client.factory import create_streaming_config

    sample_rate, pcm = _read_wav(path)
    chunk_bytes = int(sample_rate * config.chunk_duration_ms / 1000) * 2
    delay = config.chunk_duration_ms / 1000 if realtime else 0.0

    async def chunks() -> AsyncIterator[bytes]:
        for i in range(0, len(pcm), chunk_bytes):
            yield pcm[i : i + chunk_bytes]
            await asyncio.sleep(delay)

    session = await client.streaming_recognize(create_streaming_config(config, sample_rate), chunks())
    async with session:
        async for response in session:
            for result in response.results:
                if not result.alternatives:
                    continue
                text = result.alternatives[0].transcript
                if result.is_final:
                    logger.info("Transcript: %s", text)
                    print(text)
                else:
                    logger.debug("Transcript (interim): %s", text)


async def _long_running(client, config: SpeechClientConfig, args: argparse.Namespace) -> None:
    from speech_client.factory import create_recognition_config

    recognition_config = create_recognition_config(config)
    if args.no_wait:
        handle = await client.long_running_recognize(recognition_config, args.uri)
        print(handle.name)
        return

    result = await client.polling_long_running_recognize(
        recognition_config,
        args.uri,
        poll_interval=config.poll_interval_seconds if args.poll_interval is None else args.poll_interval,
        deadline=config.poll_deadline_seconds if args.deadline is None else args.deadline,
    )
    if result.error is not None:
        print(f"Operation failed: {result.error.code} {result.error.message}", file=sys.stderr)
        sys.exit(1)
    for item in result.results:
        if item.best is not None:
            print(f"[{item.result_end_offset.total_seconds:8.2f}s] {item.best.transcript}")


def _read_wav(path: Path) -> tuple[int, bytes]:
    with wave.open(str(path), "rb") as wf:
        if wf.getsampwidth() != 2:
            raise SystemExit(f"{path}: expected 16-bit PCM, got {wf.getsampwidth() * 8}-bit")
        return wf.getframerate(), wf.readframes(wf.getnframes())


if __name__ == "__main__":
    main()
